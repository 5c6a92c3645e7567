"""
Booking service following the repository/service split.

The single invariant this layer owns: two non-cancelled bookings of the
same worker never overlap. A slot ``[start, end)`` conflicts with an
existing booking when ``existing.start < end AND existing.end > start``.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from barberbook.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from barberbook.db.base import Booking, BookingStatus, Business, Role, Service, User
from barberbook.repositories.booking_repo import BookingRepository
from barberbook.repositories.business_repo import BusinessRepository
from barberbook.repositories.service_repo import ServiceRepository
from barberbook.repositories.user_repo import UserRepository
from barberbook.schemas.dtos import BookingRequest, PublicBookingRequest, parse_date

logger = logging.getLogger(__name__)

WORKER_SETTABLE_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


def compute_end_time(start: datetime, service: Service) -> datetime:
    return start + timedelta(minutes=service.duration)


def contact_notes(name: Optional[str], email: Optional[str], phone: Optional[str], notes: Optional[str]) -> str:
    """Notes stored on a public booking: the contact details, then the client's note."""
    lines = [f"Name: {name or ''}", f"Email: {email or ''}"]
    if phone:
        lines.append(f"Phone: {phone}")
    if notes:
        lines.append(f"Notes: {notes}")
    return "\n".join(lines)


class BookingService:
    """Application service for booking use-cases."""

    def __init__(
        self,
        booking_repo: BookingRepository,
        service_repo: ServiceRepository,
        user_repo: UserRepository,
        business_repo: BusinessRepository,
    ):
        self.booking_repo = booking_repo
        self.service_repo = service_repo
        self.user_repo = user_repo
        self.business_repo = business_repo

    # Shared rules

    def ensure_available(
        self,
        worker_id: int,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        conflict = self.booking_repo.find_conflict(worker_id, start, end, exclude_booking_id)
        if conflict is not None:
            logger.info(
                "Booking conflict detected",
                extra={
                    "context": {
                        "worker_id": worker_id,
                        "requested_start": start.isoformat(),
                        "requested_end": end.isoformat(),
                        "conflicting_booking_id": conflict.id,
                    }
                },
            )
            raise ConflictError()

    def _load_service_and_worker(self, business_id: int, service_id: int, worker_id: int):
        """Both must exist and belong to ``business_id``."""
        service = self.service_repo.get_by_id(service_id)
        if service is None or service.business_id != business_id:
            raise NotFoundError("Service not found")
        worker = self.user_repo.get_by_id(worker_id)
        # Owners may take bookings at their own business too.
        if worker is None or worker.role not in (Role.WORKER, Role.BUSINESS_OWNER):
            raise NotFoundError("Worker not found")
        if worker.business_id != business_id:
            raise NotFoundError("Worker not found")
        return service, worker

    def _load_client(self, client_id: int) -> User:
        client = self.user_repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client

    # Queries

    def list_for_actor(
        self,
        actor: User,
        business: Optional[Business],
        status: Optional[str] = None,
        day: Optional[str] = None,
    ) -> List[Booking]:
        """Bookings visible to ``actor``, ordered by start time.

        Owners and admins see the whole business; workers see their
        assignments; clients see their own bookings.
        """
        if status:
            status = status.upper()
            if status not in BookingStatus.ALL:
                raise ValueError("Invalid status")
        parsed_day = parse_date(day) if day else None

        if actor.role == Role.WORKER:
            return self.booking_repo.list_filtered(
                business_id=business.id if business else None,
                worker_id=actor.id,
                status=status,
                day=parsed_day,
            )
        if actor.role == Role.CLIENT:
            return self.booking_repo.list_filtered(
                client_id=actor.id, status=status, day=parsed_day
            )
        if business is None:
            raise ValueError("Business ID is required")
        return self.booking_repo.list_filtered(
            business_id=business.id, status=status, day=parsed_day
        )

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.booking_repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def get_for_actor(self, actor: User, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        self.ensure_can_view(actor, booking)
        return booking

    def ensure_can_view(self, actor: User, booking: Booking) -> None:
        if actor.role == Role.ADMIN:
            return
        if actor.role == Role.BUSINESS_OWNER:
            business = self.business_repo.get_by_owner(actor.id)
            if business is not None and business.id == booking.business_id:
                return
        elif actor.role == Role.WORKER and booking.worker_id == actor.id:
            return
        elif actor.role == Role.CLIENT and booking.client_id == actor.id:
            return
        raise PermissionDeniedError()

    def upcoming_for_actor(self, actor: User, now: datetime, limit: int = 5) -> List[Booking]:
        if actor.role == Role.CLIENT:
            return self.booking_repo.upcoming(now, client_id=actor.id, limit=limit)
        if actor.role == Role.WORKER:
            return self.booking_repo.upcoming(now, worker_id=actor.id, limit=limit)
        if actor.role == Role.BUSINESS_OWNER:
            business = self.business_repo.get_by_owner(actor.id)
            if business is None:
                return []
            return self.booking_repo.upcoming(now, business_id=business.id, limit=limit)
        return self.booking_repo.upcoming(now, limit=limit)

    # Staff commands

    def create_booking(self, business: Business, request: BookingRequest) -> Booking:
        """Create a booking from the dashboard.

        Business Rules:
        - Service and worker must belong to the business
        - End time is start plus the service duration
        - The worker must be free for the whole slot
        - Status defaults to CONFIRMED
        """
        request.validate()
        service, worker = self._load_service_and_worker(
            business.id, request.service_id, request.worker_id
        )
        client = self._load_client(request.client_id)

        start = request.start
        end = compute_end_time(start, service)
        self.ensure_available(worker.id, start, end)

        booking = self.booking_repo.add(
            Booking(
                business_id=business.id,
                service_id=service.id,
                worker_id=worker.id,
                client_id=client.id,
                start_time=start,
                end_time=end,
                status=request.status or BookingStatus.CONFIRMED,
                notes=request.notes,
            )
        )
        self.business_repo.link_client(business.id, client.id)
        logger.info(
            "Booking created",
            extra={
                "context": {
                    "booking_id": booking.id,
                    "business_id": business.id,
                    "worker_id": worker.id,
                }
            },
        )
        return booking

    def update_booking(self, booking: Booking, request: BookingRequest) -> Booking:
        """Reschedule or reassign a booking; the slot check ignores the booking itself."""
        request.validate(require_status=True)
        service, worker = self._load_service_and_worker(
            booking.business_id, request.service_id, request.worker_id
        )
        client = self._load_client(request.client_id)

        start = request.start
        end = compute_end_time(start, service)
        if request.status != BookingStatus.CANCELLED:
            self.ensure_available(worker.id, start, end, exclude_booking_id=booking.id)

        booking.service_id = service.id
        booking.worker_id = worker.id
        booking.client_id = client.id
        booking.start_time = start
        booking.end_time = end
        booking.status = request.status
        if request.notes is not None:
            booking.notes = request.notes
        return self.booking_repo.save(booking)

    def change_status(self, actor: User, booking: Booking, status: Optional[str]) -> Booking:
        """Status-only update.

        Workers may only complete or cancel their own bookings; clients may
        not use this operation at all.
        """
        if not status or str(status).upper() not in BookingStatus.ALL:
            raise ValueError("Invalid status")
        status = str(status).upper()

        if actor.role == Role.CLIENT:
            raise PermissionDeniedError()
        if actor.role == Role.WORKER:
            if booking.worker_id != actor.id or status not in WORKER_SETTABLE_STATUSES:
                raise PermissionDeniedError()
        else:
            self.ensure_can_view(actor, booking)

        if (
            booking.status == BookingStatus.CANCELLED
            and status != BookingStatus.CANCELLED
        ):
            self.ensure_available(
                booking.worker_id,
                booking.start_time,
                booking.end_time,
                exclude_booking_id=booking.id,
            )

        booking.status = status
        return self.booking_repo.save(booking)

    def cancel_booking(self, booking: Booking) -> Booking:
        booking.status = BookingStatus.CANCELLED
        booking = self.booking_repo.save(booking)
        logger.info("Booking cancelled", extra={"context": {"booking_id": booking.id}})
        return booking

    def set_paid(self, booking: Booking, is_paid) -> Booking:
        if not isinstance(is_paid, bool):
            raise ValueError("isPaid must be a boolean")
        booking.is_paid = is_paid
        return self.booking_repo.save(booking)

    # Public commands

    def create_public_booking(
        self, request: PublicBookingRequest, actor: Optional[User] = None
    ) -> Booking:
        """Create a PENDING booking from the public booking page.

        Guests are matched to (or registered as) a CLIENT by email;
        signed-in users book as themselves.
        """
        request.validate(guest=actor is None)
        business = self.business_repo.get_by_id(request.business_id)
        if business is None:
            raise NotFoundError("Business not found")
        service, worker = self._load_service_and_worker(
            business.id, request.service_id, request.worker_id
        )

        start = request.start
        end = compute_end_time(start, service)
        self.ensure_available(worker.id, start, end)

        if actor is not None:
            client = actor
            name = request.name or actor.name
            email = request.email or actor.email
        else:
            client = self.user_repo.get_or_create_client(
                request.name, request.email, request.phone
            )
            name, email = request.name, request.email

        booking = self.booking_repo.add(
            Booking(
                business_id=business.id,
                service_id=service.id,
                worker_id=worker.id,
                client_id=client.id,
                start_time=start,
                end_time=end,
                status=BookingStatus.PENDING,
                notes=contact_notes(name, email, request.phone, request.notes),
            )
        )
        self.business_repo.link_client(business.id, client.id)
        logger.info(
            "Public booking created",
            extra={"context": {"booking_id": booking.id, "business_id": business.id}},
        )
        return booking
