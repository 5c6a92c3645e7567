from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select

from barberbook.db.base import Booking, BookingStatus, Service
from barberbook.repositories.base_repo import BaseRepository


def day_bounds(day: date):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class BookingRepository(BaseRepository):
    """Repository for bookings, including the worker overlap query."""

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.get(Booking, booking_id)

    def find_conflict(
        self,
        worker_id: int,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[Booking]:
        """Return a non-cancelled booking of ``worker_id`` overlapping ``[start, end)``.

        Two ranges overlap when ``existing.start < end AND existing.end > start``;
        back-to-back slots do not conflict.
        """
        stmt = select(Booking).where(
            Booking.worker_id == worker_id,
            Booking.status != BookingStatus.CANCELLED,
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        return self.db.execute(stmt.limit(1)).scalar_one_or_none()

    def list_filtered(
        self,
        business_id: Optional[int] = None,
        worker_id: Optional[int] = None,
        client_id: Optional[int] = None,
        status: Optional[str] = None,
        day: Optional[date] = None,
    ) -> List[Booking]:
        stmt = select(Booking)
        if business_id is not None:
            stmt = stmt.where(Booking.business_id == business_id)
        if worker_id is not None:
            stmt = stmt.where(Booking.worker_id == worker_id)
        if client_id is not None:
            stmt = stmt.where(Booking.client_id == client_id)
        if status:
            stmt = stmt.where(Booking.status == status)
        if day is not None:
            day_start, day_end = day_bounds(day)
            stmt = stmt.where(Booking.start_time >= day_start, Booking.start_time < day_end)
        return list(self.db.execute(stmt.order_by(Booking.start_time)).scalars())

    def upcoming(
        self,
        now: datetime,
        business_id: Optional[int] = None,
        worker_id: Optional[int] = None,
        client_id: Optional[int] = None,
        limit: int = 5,
    ) -> List[Booking]:
        stmt = select(Booking).where(
            Booking.start_time >= now, Booking.status != BookingStatus.CANCELLED
        )
        if business_id is not None:
            stmt = stmt.where(Booking.business_id == business_id)
        if worker_id is not None:
            stmt = stmt.where(Booking.worker_id == worker_id)
        if client_id is not None:
            stmt = stmt.where(Booking.client_id == client_id)
        return list(
            self.db.execute(stmt.order_by(Booking.start_time).limit(limit)).scalars()
        )

    def recent(self, limit: int = 5) -> List[Booking]:
        return list(
            self.db.execute(
                select(Booking).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit)
            ).scalars()
        )

    def count(
        self,
        business_id: Optional[int] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        stmt = select(func.count(Booking.id))
        if business_id is not None:
            stmt = stmt.where(Booking.business_id == business_id)
        if client_id is not None:
            stmt = stmt.where(Booking.client_id == client_id)
        if start is not None:
            stmt = stmt.where(Booking.start_time >= start)
        if end is not None:
            stmt = stmt.where(Booking.start_time < end)
        return self.db.execute(stmt).scalar_one()

    def count_unpaid(self, business_id: int) -> int:
        return self.db.execute(
            select(func.count(Booking.id)).where(
                Booking.business_id == business_id,
                Booking.is_paid.is_(False),
                Booking.status != BookingStatus.CANCELLED,
            )
        ).scalar_one()

    def completed_revenue(self, business_id: int, start: datetime, end: datetime):
        """Return ``(count, total service price)`` of completed bookings in range."""
        row = self.db.execute(
            select(func.count(Booking.id), func.coalesce(func.sum(Service.price), 0))
            .join(Service, Service.id == Booking.service_id)
            .where(
                Booking.business_id == business_id,
                Booking.status == BookingStatus.COMPLETED,
                Booking.start_time >= start,
                Booking.start_time < end,
            )
        ).one()
        return int(row[0]), Decimal(str(row[1]))
