"""
Client service: the customers linked to a business.

A client account is shared across businesses; the BusinessClient link
makes it visible to one business.
"""

import logging
from typing import List, Optional

from barberbook.core.exceptions import NotFoundError, PermissionDeniedError
from barberbook.db.base import Business, Role, User
from barberbook.repositories.booking_repo import BookingRepository
from barberbook.repositories.business_repo import BusinessRepository
from barberbook.repositories.user_repo import UserRepository
from barberbook.schemas.dtos import StaffRequest

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(
        self,
        user_repo: UserRepository,
        business_repo: BusinessRepository,
        booking_repo: BookingRepository,
    ):
        self.user_repo = user_repo
        self.business_repo = business_repo
        self.booking_repo = booking_repo

    def list_clients(self, business: Business) -> List[User]:
        return self.user_repo.list_clients(business.id)

    def get_client(self, business: Optional[Business], client_id: int) -> User:
        """Return a client; with ``business`` given it must be linked to it."""
        client = self.user_repo.get_by_id(client_id)
        if client is None or client.role != Role.CLIENT:
            raise NotFoundError("Client not found")
        if business is not None and self.business_repo.get_client_link(business.id, client.id) is None:
            raise PermissionDeniedError()
        return client

    def add_client(self, business: Business, request: StaffRequest) -> User:
        """Link an existing account by email, or create a new CLIENT and link it."""
        request.validate()
        existing = self.user_repo.get_by_email(request.email)
        if existing is not None:
            if self.business_repo.get_client_link(business.id, existing.id) is not None:
                raise ValueError("Client already exists for this business")
            self.business_repo.link_client(business.id, existing.id)
            logger.info(
                "Existing user linked as client",
                extra={"context": {"user_id": existing.id, "business_id": business.id}},
            )
            return existing

        client = self.user_repo.add(
            User(
                name=request.name,
                email=request.email,
                phone=request.phone,
                role=Role.CLIENT,
            )
        )
        self.business_repo.link_client(business.id, client.id)
        logger.info(
            "Client created",
            extra={"context": {"client_id": client.id, "business_id": business.id}},
        )
        return client

    def update_client(self, client: User, request: StaffRequest) -> User:
        request.validate()
        if self.user_repo.email_in_use(request.email, exclude_id=client.id):
            raise ValueError("Email is already in use")
        client.name = request.name
        client.email = request.email
        if request.phone is not None:
            client.phone = request.phone
        return self.user_repo.save(client)

    def remove_client(self, business: Business, client: User) -> None:
        """Unlink a client from ``business``; the account itself is kept."""
        link = self.business_repo.get_client_link(business.id, client.id)
        if link is None:
            raise NotFoundError("Client not found")
        if self.booking_repo.count(business_id=business.id, client_id=client.id) > 0:
            raise ValueError(
                "Cannot remove client with existing bookings. "
                "Cancel their bookings first."
            )
        self.business_repo.delete(link)
        logger.info(
            "Client removed from business",
            extra={"context": {"client_id": client.id, "business_id": business.id}},
        )
