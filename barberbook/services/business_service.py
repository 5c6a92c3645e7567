"""
Business service: tenant resolution, settings, dashboard stats and bank accounts.
"""

import logging
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple

from barberbook.core.exceptions import NotFoundError, PermissionDeniedError
from barberbook.db.base import (
    BankAccount,
    Business,
    BusinessSettings,
    Payment,
    Role,
    User,
)
from barberbook.repositories.booking_repo import BookingRepository
from barberbook.repositories.business_repo import BusinessRepository
from barberbook.repositories.payment_repo import PaymentRepository
from barberbook.repositories.service_repo import ServiceRepository
from barberbook.repositories.user_repo import UserRepository
from barberbook.schemas.dtos import BankAccountRequest, BusinessSettingsRequest

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def default_business_name(owner: User) -> str:
    return f"{owner.name}'s Business" if owner.name else "My Business"


class BusinessService:
    """Application service for business-level use-cases.

    Every staff route starts with ``resolve_business``, which turns the
    acting user (plus an optional ``businessId`` for admins) into the
    tenant the request operates on.
    """

    def __init__(
        self,
        business_repo: BusinessRepository,
        user_repo: UserRepository,
        booking_repo: BookingRepository,
        service_repo: ServiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.business_repo = business_repo
        self.user_repo = user_repo
        self.booking_repo = booking_repo
        self.service_repo = service_repo
        self.payment_repo = payment_repo

    # Tenant resolution

    def resolve_business(
        self,
        actor: User,
        business_id: Optional[int] = None,
        create_missing: bool = False,
    ) -> Business:
        """Return the business ``actor`` operates on.

        Business Rules:
        - ADMIN must name the business explicitly
        - BUSINESS_OWNER always works on their own business; naming another one is forbidden
        - WORKER works on their employer
        - CLIENT must name the business explicitly (read-only routes)
        """
        if actor.role in (Role.ADMIN, Role.CLIENT):
            if business_id is None:
                raise ValueError("Business ID is required")
            business = self.business_repo.get_by_id(business_id)
            if business is None:
                raise NotFoundError("Business not found")
            return business

        if actor.role == Role.BUSINESS_OWNER:
            business = self.business_repo.get_by_owner(actor.id)
            if business is None and create_missing:
                business = self.create_for_owner(actor)
            if business is None:
                raise NotFoundError("Business not found")
            if business_id is not None and business_id != business.id:
                raise PermissionDeniedError()
            return business

        if actor.business_id is None:
            raise NotFoundError("Business not found")
        if business_id is not None and business_id != actor.business_id:
            raise PermissionDeniedError()
        business = self.business_repo.get_by_id(actor.business_id)
        if business is None:
            raise NotFoundError("Business not found")
        return business

    def assert_manages(self, actor: User, business_id: int) -> None:
        """Raise PermissionDeniedError unless ``actor`` may manage ``business_id``."""
        if actor.role == Role.ADMIN:
            return
        if actor.role == Role.BUSINESS_OWNER:
            business = self.business_repo.get_by_owner(actor.id)
            if business is not None and business.id == business_id:
                return
        raise PermissionDeniedError()

    def create_for_owner(self, owner: User, name: Optional[str] = None, description: Optional[str] = None) -> Business:
        business = self.business_repo.add(
            Business(
                name=name or default_business_name(owner),
                description=description,
                owner_id=owner.id,
            )
        )
        owner.business_id = business.id
        self.user_repo.save(owner)
        self.business_repo.get_or_create_settings(business)
        logger.info(
            "Business created",
            extra={"context": {"business_id": business.id, "owner_id": owner.id}},
        )
        return business

    # Settings

    def get_settings(self, business: Business) -> Tuple[Business, BusinessSettings]:
        return business, self.business_repo.get_or_create_settings(business)

    def update_settings(
        self, business: Business, request: BusinessSettingsRequest
    ) -> Tuple[Business, BusinessSettings]:
        request.validate()
        settings = self.business_repo.get_or_create_settings(business)

        business.name = request.name
        business.description = request.description
        business.address = request.address
        business.phone = request.phone
        business.email = request.email
        if request.stripe_connect_id is not None:
            settings.stripe_connect_id = request.stripe_connect_id
        if request.payouts_enabled is not None:
            settings.payouts_enabled = request.payouts_enabled
        if request.currency is not None:
            settings.currency = request.currency
        if request.opening_hours is not None:
            settings.opening_hours = request.opening_hours

        self.business_repo.save(business)
        logger.info(
            "Business settings updated", extra={"context": {"business_id": business.id}}
        )
        return business, settings

    # Dashboard

    def stats(self, business: Business, now: datetime) -> Dict[str, Any]:
        month_start = datetime(now.year, now.month, 1)
        if now.month == 12:
            next_month = datetime(now.year + 1, 1, 1)
        else:
            next_month = datetime(now.year, now.month + 1, 1)
        today = datetime.combine(now.date(), time.min)

        completed_count, monthly_revenue = self.booking_repo.completed_revenue(
            business.id, month_start, next_month
        )
        avg_value = (
            (monthly_revenue / completed_count).quantize(CENTS, rounding=ROUND_HALF_UP)
            if completed_count
            else Decimal("0")
        )
        return {
            "totalBookings": self.booking_repo.count(business_id=business.id),
            "activeClients": self.business_repo.count_clients(business.id),
            "monthlyRevenue": float(monthly_revenue),
            "avgBookingValue": float(avg_value),
            "activeWorkers": self.user_repo.count_workers(business.id),
            "activeServices": self.service_repo.count_by_business(business.id),
            "todayBookings": self.booking_repo.count(
                business_id=business.id, start=today, end=today + timedelta(days=1)
            ),
            "pendingPayments": self.booking_repo.count_unpaid(business.id),
        }

    def payment_history(self, business: Business) -> List[Payment]:
        return self.payment_repo.list_by_business(business.id)

    # Bank accounts

    def list_bank_accounts(self, business: Business) -> List[BankAccount]:
        return self.business_repo.list_bank_accounts(business.id)

    def add_bank_account(self, business: Business, request: BankAccountRequest) -> BankAccount:
        request.validate()
        existing = self.business_repo.list_bank_accounts(business.id)
        make_default = request.is_default or not existing
        if make_default:
            self.business_repo.clear_default_bank_account(business.id)
        return self.business_repo.add(
            BankAccount(
                business_id=business.id,
                account_name=request.account_name,
                account_number=request.account_number,
                sort_code=request.sort_code,
                is_default=make_default,
            )
        )

    def update_bank_account(
        self, business: Business, account_id: int, request: BankAccountRequest
    ) -> BankAccount:
        request.validate()
        account = self.business_repo.get_bank_account(business.id, account_id)
        if account is None:
            raise NotFoundError("Bank account not found")
        if request.is_default and not account.is_default:
            self.business_repo.clear_default_bank_account(business.id)
            account.is_default = True
        account.account_name = request.account_name
        account.account_number = request.account_number
        account.sort_code = request.sort_code
        return self.business_repo.save(account)

    def delete_bank_account(self, business: Business, account_id: int) -> None:
        account = self.business_repo.get_bank_account(business.id, account_id)
        if account is None:
            raise NotFoundError("Bank account not found")
        was_default = account.is_default
        self.business_repo.delete(account)
        if was_default:
            remaining = self.business_repo.list_bank_accounts(business.id)
            if remaining:
                remaining[0].is_default = True
                self.business_repo.save(remaining[0])

    # Public directory

    def list_public(self) -> List[Business]:
        return self.business_repo.list_all()

    def get_public(self, business_id: int) -> Business:
        business = self.business_repo.get_by_id(business_id)
        if business is None:
            raise NotFoundError("Business not found")
        return business
