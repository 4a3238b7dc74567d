"""
SMS Models
Delivery log for customer and worker text messages
"""

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from .database import Base


class SmsLog(Base):
    """Track every SMS attempt, whichever provider handled it"""

    __tablename__ = "sms_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Message details
    to_phone = Column(String(20), nullable=False)
    message_body = Column(Text, nullable=False)
    provider = Column(String(20), nullable=False)

    # Provider response
    provider_message_id = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False)  # sent, failed, skipped
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
