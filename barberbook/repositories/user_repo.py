from typing import List, Optional

from sqlalchemy import func, select

from barberbook.db.base import Booking, BusinessClient, Role, User
from barberbook.repositories.base_repo import BaseRepository


class UserRepository(BaseRepository):
    """Repository for User persistence operations."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        ).scalar_one_or_none()

    def email_in_use(self, email: str, exclude_id: Optional[int] = None) -> bool:
        user = self.get_by_email(email)
        return user is not None and user.id != exclude_id

    def get_or_create_client(
        self, name: Optional[str], email: str, phone: Optional[str] = None
    ) -> User:
        """Match a guest to an account by email, or register them as a CLIENT."""
        user = self.get_by_email(email)
        if user is None:
            user = self.add(User(name=name, email=email, phone=phone, role=Role.CLIENT))
        return user

    def list_workers(self, business_id: int) -> List[User]:
        """Workers employed by a business, sorted by name."""
        return list(
            self.db.execute(
                select(User)
                .where(User.business_id == business_id, User.role == Role.WORKER)
                .order_by(User.name)
            ).scalars()
        )

    def list_clients(self, business_id: int) -> List[User]:
        """Clients linked to a business through BusinessClient."""
        return list(
            self.db.execute(
                select(User)
                .join(BusinessClient, BusinessClient.client_id == User.id)
                .where(BusinessClient.business_id == business_id)
                .order_by(User.name)
            ).scalars()
        )

    def list_all(self) -> List[User]:
        return list(self.db.execute(select(User).order_by(User.id)).scalars())

    def count_all(self) -> int:
        return self.db.execute(select(func.count(User.id))).scalar_one()

    def count_workers(self, business_id: int) -> int:
        return self.db.execute(
            select(func.count(User.id)).where(
                User.business_id == business_id, User.role == Role.WORKER
            )
        ).scalar_one()

    def count_bookings_as_worker(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(Booking.id)).where(Booking.worker_id == user_id)
        ).scalar_one()
