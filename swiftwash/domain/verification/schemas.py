"""Phone verification schemas"""

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_phone


class SendOtpRequest(BaseModel):
    phone: str

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)


class VerifyOtpRequest(BaseModel):
    phone: str
    otp: str = Field(..., pattern=r"^\d{6}$")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)
