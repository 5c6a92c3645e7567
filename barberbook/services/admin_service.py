"""
Platform administration: business management and platform-wide stats.
"""

import logging
from typing import Any, Dict, List, Optional

from barberbook.core.exceptions import NotFoundError
from barberbook.db.base import Business, Role
from barberbook.repositories.booking_repo import BookingRepository
from barberbook.repositories.business_repo import BusinessRepository
from barberbook.repositories.payment_repo import PaymentRepository
from barberbook.repositories.user_repo import UserRepository
from barberbook.schemas.serializers import booking_to_dict
from barberbook.services.business_service import BusinessService

logger = logging.getLogger(__name__)

EDITABLE_BUSINESS_FIELDS = {
    "name": "name",
    "description": "description",
    "address": "address",
    "phone": "phone",
    "email": "email",
}


class AdminService:
    def __init__(
        self,
        business_service: BusinessService,
        business_repo: BusinessRepository,
        user_repo: UserRepository,
        booking_repo: BookingRepository,
        payment_repo: PaymentRepository,
    ):
        self.business_service = business_service
        self.business_repo = business_repo
        self.user_repo = user_repo
        self.booking_repo = booking_repo
        self.payment_repo = payment_repo

    def list_businesses(self) -> List[Business]:
        return self.business_repo.list_all()

    def get_business(self, business_id: int) -> Business:
        business = self.business_repo.get_by_id(business_id)
        if business is None:
            raise NotFoundError("Business not found")
        return business

    def create_business(
        self, name: Optional[str], description: Optional[str], owner_id: Optional[int]
    ) -> Business:
        """Create a business for an existing user and promote them to owner.

        Business Rules:
        - Name and owner are required
        - The owner must exist and may own only one business
        - Admin accounts keep their role
        """
        if not name or not str(name).strip() or not owner_id:
            raise ValueError("Name and owner ID are required")

        owner = self.user_repo.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("Owner not found")
        if self.business_repo.get_by_owner(owner.id) is not None:
            raise ValueError("User already owns a business")

        if owner.role != Role.ADMIN:
            owner.role = Role.BUSINESS_OWNER
        return self.business_service.create_for_owner(
            owner, name=str(name).strip(), description=description
        )

    def update_business(self, business_id: int, data: Dict[str, Any]) -> Business:
        business = self.get_business(business_id)
        if "name" in data and not str(data.get("name") or "").strip():
            raise ValueError("Business name is required")
        for key, attr in EDITABLE_BUSINESS_FIELDS.items():
            if key in data:
                value = data[key]
                setattr(business, attr, str(value).strip() if value is not None else None)
        return self.business_repo.save(business)

    def delete_business(self, business_id: int) -> None:
        business = self.get_business(business_id)
        self.business_repo.delete_business(business)
        logger.info("Business deleted", extra={"context": {"business_id": business_id}})

    def stats(self) -> Dict[str, Any]:
        return {
            "totalBusinesses": self.business_repo.count_all(),
            "totalUsers": self.user_repo.count_all(),
            "totalBookings": self.booking_repo.count(),
            "totalRevenue": float(self.payment_repo.total_completed()),
            "recentActivities": [
                booking_to_dict(booking) for booking in self.booking_repo.recent(5)
            ],
        }
