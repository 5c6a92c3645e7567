"""
Per-request wiring of repositories and services.

Controllers open one database session per request:

    with service_scope() as services:
        actor = services.current_actor()
        booking = services.bookings.get_for_actor(actor, booking_id)
        return jsonify(booking_to_dict(booking)), 200

The session is closed when the block exits, so responses must be
serialized inside it.
"""

from contextlib import contextmanager
from typing import Iterator

from flask_login import current_user
from sqlalchemy.orm import Session

from barberbook.core.exceptions import NotFoundError
from barberbook.db.base import User
from barberbook.db.session import SessionLocal
from barberbook.repositories.booking_repo import BookingRepository
from barberbook.repositories.business_repo import BusinessRepository
from barberbook.repositories.payment_repo import PaymentRepository
from barberbook.repositories.service_repo import ServiceRepository
from barberbook.repositories.user_repo import UserRepository
from barberbook.services.admin_service import AdminService
from barberbook.services.booking_service import BookingService
from barberbook.services.business_service import BusinessService
from barberbook.services.catalog_service import CatalogService
from barberbook.services.client_service import ClientService
from barberbook.services.payment_service import PaymentService
from barberbook.services.staff_service import StaffService
from barberbook.services.user_service import UserService


class ServiceRegistry:
    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.business_repo = BusinessRepository(db)
        self.service_repo = ServiceRepository(db)
        self.booking_repo = BookingRepository(db)
        self.payment_repo = PaymentRepository(db)

        self.users = UserService(self.user_repo)
        self.business = BusinessService(
            self.business_repo,
            self.user_repo,
            self.booking_repo,
            self.service_repo,
            self.payment_repo,
        )
        self.admin = AdminService(
            self.business,
            self.business_repo,
            self.user_repo,
            self.booking_repo,
            self.payment_repo,
        )
        self.catalog = CatalogService(self.service_repo)
        self.staff = StaffService(self.user_repo)
        self.clients = ClientService(self.user_repo, self.business_repo, self.booking_repo)
        self.bookings = BookingService(
            self.booking_repo, self.service_repo, self.user_repo, self.business_repo
        )
        self.payments = PaymentService(
            self.payment_repo, self.business_repo, self.bookings
        )

    def current_actor(self) -> User:
        """The signed-in user, loaded into this request's session."""
        user = self.user_repo.get_by_id(int(current_user.get_id()))
        if user is None:
            raise NotFoundError("User not found")
        return user


@contextmanager
def service_scope() -> Iterator[ServiceRegistry]:
    db = SessionLocal()
    try:
        yield ServiceRegistry(db)
    finally:
        db.close()
