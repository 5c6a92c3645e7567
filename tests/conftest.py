"""
Central pytest configuration for the BarberBook tests.

Environment variables are set before the application is imported so the
lazy engine, Stripe settings and rate limiter all pick up test values.
Every test that uses the ``app`` fixture gets a freshly created in-memory
SQLite schema.
"""

import os
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["FLASK_ENV"] = "testing"
os.environ["FLASK_SECRET_KEY"] = "test-flask-secret-key-with-enough-length"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-with-enough-length"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_dummy"
os.environ["APP_TZ"] = "UTC"
os.environ.pop("ADMIN_USERNAME", None)
os.environ.pop("ADMIN_PASSWORD", None)
os.environ.pop("SENTRY_DSN", None)

from barberbook.core.security import hash_password  # noqa: E402
from barberbook.db.base import (  # noqa: E402
    Booking,
    BookingStatus,
    Business,
    BusinessClient,
    BusinessSettings,
    Role,
    Service,
    User,
)
from barberbook.db.session import SessionLocal, drop_tables  # noqa: E402

TEST_PASSWORD = "Password123!"
BOOKING_DAY = "2030-01-15"


# =====================================================
# APPLICATION FIXTURES
# =====================================================


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def app():
    from barberbook.main import create_app

    drop_tables()
    application = create_app()
    yield application
    drop_tables()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def login(test_client, email, password=TEST_PASSWORD):
    response = test_client.post(
        "/api/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.get_json()
    return response


@pytest.fixture
def login_as(app):
    """Return a new test client signed in as ``user``."""

    def _login_as(user):
        test_client = app.test_client()
        login(test_client, user.email)
        return test_client

    return _login_as


# =====================================================
# DATA FACTORIES
# =====================================================


@pytest.fixture
def make_user(app, password_hash):
    def _make_user(role=Role.CLIENT, email=None, name=None, business_id=None):
        with SessionLocal() as db:
            user = User(
                name=name or f"{role.title()} User",
                email=email or f"{role.lower()}-{uuid.uuid4().hex[:8]}@example.com",
                role=role,
                business_id=business_id,
                password_hash=password_hash,
            )
            db.add(user)
            db.commit()
            return user

    return _make_user


@pytest.fixture
def make_business(app):
    def _make_business(owner, name="Sharp Cuts"):
        with SessionLocal() as db:
            business = Business(
                name=name,
                description="Classic cuts",
                owner_id=owner.id,
                settings=BusinessSettings(currency="usd"),
            )
            db.add(business)
            db.flush()
            db.get(User, owner.id).business_id = business.id
            db.commit()
            return business

    return _make_business


@pytest.fixture
def make_service(app):
    def _make_service(business, name="Haircut", duration=30, price="25.00"):
        with SessionLocal() as db:
            service = Service(
                name=name,
                duration=duration,
                price=Decimal(price),
                business_id=business.id,
            )
            db.add(service)
            db.commit()
            return service

    return _make_service


@pytest.fixture
def make_booking(app):
    def _make_booking(
        business,
        service,
        worker,
        customer,
        start,
        status=BookingStatus.CONFIRMED,
        is_paid=False,
    ):
        if isinstance(start, str):
            start = datetime.fromisoformat(start)
        with SessionLocal() as db:
            booking = Booking(
                business_id=business.id,
                service_id=service.id,
                worker_id=worker.id,
                client_id=customer.id,
                start_time=start,
                end_time=start + timedelta(minutes=service.duration),
                status=status,
                is_paid=is_paid,
            )
            db.add(booking)
            if db.query(BusinessClient).filter_by(
                business_id=business.id, client_id=customer.id
            ).first() is None:
                db.add(BusinessClient(business_id=business.id, client_id=customer.id))
            db.commit()
            return booking

    return _make_booking


# =====================================================
# COMMON ACTORS
# =====================================================


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, email="admin@example.com", name="Ada Admin")


@pytest.fixture
def owner(make_user):
    return make_user(Role.BUSINESS_OWNER, email="owner@example.com", name="Olivia Owner")


@pytest.fixture
def business(owner, make_business):
    return make_business(owner)


@pytest.fixture
def worker(make_user, business):
    return make_user(
        Role.WORKER, email="worker@example.com", name="Wes Worker", business_id=business.id
    )


@pytest.fixture
def customer(make_user):
    return make_user(Role.CLIENT, email="client@example.com", name="Carl Client")


@pytest.fixture
def service(make_service, business):
    return make_service(business)


@pytest.fixture
def owner_client(login_as, owner, business):
    return login_as(owner)


@pytest.fixture
def admin_client(login_as, admin):
    return login_as(admin)


@pytest.fixture
def worker_client(login_as, worker):
    return login_as(worker)


@pytest.fixture
def customer_client(login_as, customer):
    return login_as(customer)
