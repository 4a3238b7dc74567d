"""
Pytest configuration and fixtures
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMS_PROVIDER", "simulated")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from swiftwash.auth import create_admin_token, create_customer_token, create_worker_token  # noqa: E402
from swiftwash.config import SmsSettings  # noqa: E402
from swiftwash.database import Base, build_engine, get_db  # noqa: E402
from swiftwash.domain.pricing import get_price  # noqa: E402
from swiftwash.main import app  # noqa: E402
from swiftwash.models import Booking, Customer, Worker, default_worker_settings  # noqa: E402
from swiftwash.rate_limiter import rate_limit_otp_send  # noqa: E402
from swiftwash.security_utils import hash_password_bcrypt  # noqa: E402
from swiftwash.services.notification_service import NotificationDispatcher, get_dispatcher  # noqa: E402

WORKER_PASSWORD = "washer123"


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher that records messages instead of sending them"""

    def __init__(self, fail: bool = False):
        super().__init__(SmsSettings(provider="simulated"))
        self.sent = []
        self.fail = fail

    async def send(self, phone: str, message: str) -> dict:
        self.sent.append((phone, message))
        if self.fail:
            return self._result(False, error="provider unavailable")
        return self._result(True, message_id=f"test-{len(self.sent)}")


@pytest.fixture
def test_engine(tmp_path):
    """File-backed SQLite so every session gets its own connection"""
    engine = build_engine(f"sqlite:///{tmp_path / 'swiftwash_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def client(session_factory, dispatcher):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[rate_limit_otp_send] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_admin_token('admin')}"}


@pytest.fixture
def make_worker(db_session):
    """Factory for worker accounts"""
    counter = {"n": 0}

    def _make(name="Jane Washer", is_active=True, role="worker", phone="254700000001"):
        counter["n"] += 1
        worker = Worker(
            name=name,
            email=f"worker{counter['n']}@swiftwash.test",
            phone=phone,
            password_hash=hash_password_bcrypt(WORKER_PASSWORD),
            role=role,
            is_active=is_active,
            settings=default_worker_settings(),
        )
        db_session.add(worker)
        db_session.commit()
        db_session.refresh(worker)
        return worker

    return _make


@pytest.fixture
def worker(make_worker):
    return make_worker()


@pytest.fixture
def worker_headers(worker):
    return {"Authorization": f"Bearer {create_worker_token(worker)}"}


@pytest.fixture
def make_booking(db_session):
    """Factory for bookings inserted straight into the database"""

    def _make(
        status="pending",
        phone="254712345678",
        vehicle_class="saloon",
        service_type="body_wash",
        assigned_worker_id=None,
        scheduled_date=None,
        customer_name="John Kamau",
    ):
        booking = Booking(
            customer_name=customer_name,
            phone=phone,
            location="Westlands, Nairobi",
            vehicle_class=vehicle_class,
            service_type=service_type,
            scheduled_date=scheduled_date or date.today() + timedelta(days=1),
            scheduled_time="10:00",
            status=status,
            price=get_price(vehicle_class, service_type),
            assigned_worker_id=assigned_worker_id,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def customer(db_session):
    customer = Customer(name="John Kamau", phone="254712345678", loyalty_points=10)
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {create_customer_token(customer)}"}


@pytest.fixture
def booking_payload():
    """Factory for valid public booking requests"""

    def _payload(**overrides):
        payload = {
            "customerName": "John Kamau",
            "phone": "0712345678",
            "email": "john@example.com",
            "location": "Westlands, Nairobi",
            "vehicleClass": "suv",
            "serviceType": "full_service",
            "scheduledDate": (date.today() + timedelta(days=2)).isoformat(),
            "scheduledTime": "10:00",
        }
        payload.update(overrides)
        return payload

    return _payload


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
