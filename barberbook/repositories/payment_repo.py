from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select

from barberbook.db.base import Payment, PaymentStatus
from barberbook.repositories.base_repo import BaseRepository


class PaymentRepository(BaseRepository):
    """Repository for Payment model operations."""

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        return self.db.get(Payment, payment_id)

    def get_by_stripe_id(self, stripe_payment_id: str) -> Optional[Payment]:
        return self.db.execute(
            select(Payment).where(Payment.stripe_payment_id == stripe_payment_id)
        ).scalar_one_or_none()

    def list_by_business(self, business_id: int, limit: int = 100) -> List[Payment]:
        return list(
            self.db.execute(
                select(Payment)
                .where(Payment.business_id == business_id)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
                .limit(limit)
            ).scalars()
        )

    def total_completed(self) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.status == PaymentStatus.COMPLETED
            )
        ).scalar_one()
        return Decimal(str(total))
