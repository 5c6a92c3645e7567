from typing import List, Optional

from sqlalchemy import func, select

from barberbook.db.base import Booking, Service
from barberbook.repositories.base_repo import BaseRepository


class ServiceRepository(BaseRepository):
    """Repository for the services a business offers."""

    def get_by_id(self, service_id: int) -> Optional[Service]:
        return self.db.get(Service, service_id)

    def list_by_business(self, business_id: int) -> List[Service]:
        return list(
            self.db.execute(
                select(Service)
                .where(Service.business_id == business_id)
                .order_by(Service.name)
            ).scalars()
        )

    def count_by_business(self, business_id: int) -> int:
        return self.db.execute(
            select(func.count(Service.id)).where(Service.business_id == business_id)
        ).scalar_one()

    def count_bookings(self, service_id: int) -> int:
        return self.db.execute(
            select(func.count(Booking.id)).where(Booking.service_id == service_id)
        ).scalar_one()

    def most_booked(self, business_id: Optional[int] = None, limit: int = 4) -> List[Service]:
        """Services ordered by how many bookings reference them."""
        booking_count = func.count(Booking.id)
        stmt = (
            select(Service)
            .outerjoin(Booking, Booking.service_id == Service.id)
            .group_by(Service.id)
            .order_by(booking_count.desc(), Service.id)
            .limit(limit)
        )
        if business_id is not None:
            stmt = stmt.where(Service.business_id == business_id)
        return list(self.db.execute(stmt).scalars())
