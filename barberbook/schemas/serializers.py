"""
JSON serializers for ORM models.

API responses use camelCase keys. Serializers must run while the owning
session is still open because nested relationships load lazily.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from barberbook.core.api_utils import isoformat
from barberbook.db.base import (
    BankAccount,
    Booking,
    Business,
    BusinessSettings,
    Payment,
    Service,
    User,
)


def money(value: Optional[Decimal]) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def user_to_dict(user: User) -> Dict[str, Any]:
    """Public view of a user. Never includes the password hash."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
        "businessId": user.business_id,
        "createdAt": isoformat(user.created_at),
    }


def user_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def business_to_dict(business: Business) -> Dict[str, Any]:
    return {
        "id": business.id,
        "name": business.name,
        "description": business.description,
        "address": business.address,
        "phone": business.phone,
        "email": business.email,
        "ownerId": business.owner_id,
        "createdAt": isoformat(business.created_at),
    }


def settings_to_dict(business: Business, settings: Optional[BusinessSettings]) -> Dict[str, Any]:
    data = business_to_dict(business)
    data.update(
        {
            "stripeConnectId": settings.stripe_connect_id if settings else None,
            "payoutsEnabled": settings.payouts_enabled if settings else False,
            "currency": settings.currency if settings else "usd",
            "openingHours": settings.opening_hours if settings else None,
        }
    )
    return data


def public_settings_to_dict(business: Business, settings: Optional[BusinessSettings]) -> Dict[str, Any]:
    """Settings safe to show on the public booking page."""
    return {
        "businessId": business.id,
        "name": business.name,
        "address": business.address,
        "phone": business.phone,
        "email": business.email,
        "currency": settings.currency if settings else "usd",
        "openingHours": settings.opening_hours if settings else None,
        "acceptsOnlinePayments": bool(settings and settings.payouts_enabled),
    }


def service_to_dict(service: Service) -> Dict[str, Any]:
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "duration": service.duration,
        "price": money(service.price),
        "businessId": service.business_id,
    }


def booking_to_dict(booking: Booking) -> Dict[str, Any]:
    return {
        "id": booking.id,
        "businessId": booking.business_id,
        "serviceId": booking.service_id,
        "workerId": booking.worker_id,
        "clientId": booking.client_id,
        "startTime": isoformat(booking.start_time),
        "endTime": isoformat(booking.end_time),
        "status": booking.status,
        "isPaid": booking.is_paid,
        "notes": booking.notes,
        "service": service_to_dict(booking.service) if booking.service else None,
        "worker": user_summary(booking.worker),
        "client": user_summary(booking.client),
        "createdAt": isoformat(booking.created_at),
    }


def payment_to_dict(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "amount": money(payment.amount),
        "platformFeeAmount": money(payment.platform_fee_amount),
        "stripeFeeAmount": money(payment.stripe_fee_amount),
        "businessAmount": money(payment.business_amount),
        "currency": payment.currency,
        "status": payment.status,
        "stripePaymentId": payment.stripe_payment_id,
        "businessId": payment.business_id,
        "bookingId": payment.booking_id,
        "clientId": payment.client_id,
        "createdAt": isoformat(payment.created_at),
    }


def bank_account_to_dict(account: BankAccount) -> Dict[str, Any]:
    # Only the last four digits leave the server.
    return {
        "id": account.id,
        "accountName": account.account_name,
        "accountNumberLast4": account.account_number[-4:],
        "sortCode": account.sort_code,
        "isDefault": account.is_default,
        "createdAt": isoformat(account.created_at),
    }
