from typing import List, Optional

from sqlalchemy import func, select, update

from barberbook.db.base import (
    BankAccount,
    Business,
    BusinessClient,
    BusinessSettings,
    Payment,
    User,
)
from barberbook.repositories.base_repo import BaseRepository


class BusinessRepository(BaseRepository):
    """Repository for businesses and the records hanging off them
    (settings, client links, bank accounts)."""

    def get_by_id(self, business_id: int) -> Optional[Business]:
        return self.db.get(Business, business_id)

    def get_by_owner(self, owner_id: int) -> Optional[Business]:
        return self.db.execute(
            select(Business).where(Business.owner_id == owner_id)
        ).scalar_one_or_none()

    def list_all(self) -> List[Business]:
        return list(self.db.execute(select(Business).order_by(Business.name)).scalars())

    def count_all(self) -> int:
        return self.db.execute(select(func.count(Business.id))).scalar_one()

    def delete_business(self, business: Business) -> None:
        """Delete a business, detaching its staff and dropping its payments."""
        try:
            self.db.execute(
                update(User)
                .where(User.business_id == business.id)
                .values(business_id=None)
            )
            for payment in self.db.execute(
                select(Payment).where(Payment.business_id == business.id)
            ).scalars():
                self.db.delete(payment)
            self.db.delete(business)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # Settings

    def get_or_create_settings(self, business: Business) -> BusinessSettings:
        if business.settings is None:
            business.settings = BusinessSettings(business_id=business.id)
            self.save(business)
        return business.settings

    # Client links

    def get_client_link(self, business_id: int, client_id: int) -> Optional[BusinessClient]:
        return self.db.execute(
            select(BusinessClient).where(
                BusinessClient.business_id == business_id,
                BusinessClient.client_id == client_id,
            )
        ).scalar_one_or_none()

    def link_client(self, business_id: int, client_id: int) -> BusinessClient:
        """Link a client to a business; an existing link is returned as is."""
        link = self.get_client_link(business_id, client_id)
        if link is not None:
            return link
        return self.add(BusinessClient(business_id=business_id, client_id=client_id))

    def count_clients(self, business_id: int) -> int:
        return self.db.execute(
            select(func.count(BusinessClient.id)).where(
                BusinessClient.business_id == business_id
            )
        ).scalar_one()

    # Bank accounts

    def list_bank_accounts(self, business_id: int) -> List[BankAccount]:
        return list(
            self.db.execute(
                select(BankAccount)
                .where(BankAccount.business_id == business_id)
                .order_by(BankAccount.is_default.desc(), BankAccount.id)
            ).scalars()
        )

    def get_bank_account(self, business_id: int, account_id: int) -> Optional[BankAccount]:
        return self.db.execute(
            select(BankAccount).where(
                BankAccount.id == account_id, BankAccount.business_id == business_id
            )
        ).scalar_one_or_none()

    def clear_default_bank_account(self, business_id: int) -> None:
        self.db.execute(
            update(BankAccount)
            .where(BankAccount.business_id == business_id)
            .values(is_default=False)
        )
