"""
Data Transfer Objects (DTOs) and validation schemas.

Each request DTO is built from a JSON body with ``from_dict`` and checked
with ``validate()``, which raises ``ValueError`` with the message returned
to the client as a 400.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from barberbook.core.config import get_app_timezone
from barberbook.db.base import BookingStatus

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ACCOUNT_NUMBER_RE = re.compile(r"^\d{8}$")
SORT_CODE_RE = re.compile(r"^\d{2}-\d{2}-\d{2}$")


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _int(value: Any, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field}")


def _decimal(value: Any, field: str) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid {field}")
    if not result.is_finite():
        raise ValueError(f"Invalid {field}")
    return result


def parse_date(value: Optional[str]) -> date:
    """Parse ``YYYY-MM-DD``."""
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")


def parse_start(date_value: Optional[str], start_value: Optional[str]) -> datetime:
    """Combine a ``YYYY-MM-DD`` date with an ``HH:MM`` start time.

    A full ISO timestamp in ``start_value`` is accepted on its own; one with
    an offset is converted to APP_TZ wall-clock time.
    """
    if not start_value:
        raise ValueError("Start time is required")
    if "T" in start_value:
        try:
            parsed = datetime.fromisoformat(start_value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Invalid start time")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(get_app_timezone())
        return parsed.replace(tzinfo=None)
    day = parse_date(date_value)
    try:
        clock = datetime.strptime(start_value, "%H:%M").time()
    except ValueError:
        raise ValueError("Invalid start time format. Use HH:MM")
    return datetime.combine(day, clock)


def validate_email(email: Optional[str]) -> None:
    if not email or not EMAIL_RE.match(email):
        raise ValueError("Valid email is required")


@dataclass
class RegisterRequest:
    """DTO for self sign-up."""

    name: Optional[str]
    email: Optional[str]
    password: Optional[str]
    role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegisterRequest":
        email = _str(data.get("email"))
        return cls(
            name=_str(data.get("name")),
            email=email.lower() if email else None,
            password=data.get("password") or None,
            role=_str(data.get("role")),
        )

    def validate(self) -> None:
        if not self.name or not self.email or not self.password:
            raise ValueError("Name, email and password are required")
        validate_email(self.email)
        if len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters")


@dataclass
class StaffRequest:
    """DTO for creating or updating a worker or a client."""

    name: Optional[str]
    email: Optional[str]
    password: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StaffRequest":
        email = _str(data.get("email"))
        return cls(
            name=_str(data.get("name")),
            email=email.lower() if email else None,
            password=data.get("password") or None,
            phone=_str(data.get("phone")),
        )

    def validate(self, require_password: bool = False) -> None:
        if require_password:
            if not self.name or not self.email or not self.password:
                raise ValueError("Name, email and password are required")
        elif not self.name or not self.email:
            raise ValueError("Name and email are required")
        validate_email(self.email)


@dataclass
class ServiceRequest:
    """DTO for service create and update requests."""

    name: Optional[str]
    duration: Optional[int]
    price: Optional[Decimal]
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceRequest":
        return cls(
            name=_str(data.get("name")),
            duration=_int(data.get("duration"), "duration"),
            price=_decimal(data.get("price"), "price"),
            description=_str(data.get("description")),
        )

    def validate(self) -> None:
        if not self.name or self.duration is None or self.price is None:
            raise ValueError("Name, duration, and price are required")
        if self.duration < 5:
            raise ValueError("Duration must be at least 5 minutes")
        if self.price < 0:
            raise ValueError("Price cannot be negative")


@dataclass
class BookingRequest:
    """DTO for staff-created bookings (dashboard)."""

    date: Optional[str]
    start_time: Optional[str]
    client_id: Optional[int]
    worker_id: Optional[int]
    service_id: Optional[int]
    status: Optional[str] = None
    notes: Optional[str] = None
    business_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookingRequest":
        status = _str(data.get("status"))
        return cls(
            date=_str(data.get("date")),
            start_time=_str(data.get("startTime")),
            client_id=_int(data.get("clientId"), "clientId"),
            worker_id=_int(data.get("workerId"), "workerId"),
            service_id=_int(data.get("serviceId"), "serviceId"),
            status=status.upper() if status else None,
            notes=_str(data.get("notes")),
            business_id=_int(data.get("businessId"), "businessId"),
        )

    def validate(self, require_status: bool = False) -> None:
        if not self.start_time or not self.client_id or not self.worker_id:
            raise ValueError("Missing required fields")
        if not self.service_id:
            raise ValueError("Missing required fields")
        if require_status and not self.status:
            raise ValueError("Missing required fields")
        if self.status and self.status not in BookingStatus.ALL:
            raise ValueError("Invalid status")

    @property
    def start(self) -> datetime:
        return parse_start(self.date, self.start_time)


@dataclass
class PublicBookingRequest:
    """DTO for bookings made from the public booking page."""

    business_id: Optional[int]
    service_id: Optional[int]
    worker_id: Optional[int]
    date: Optional[str]
    start_time: Optional[str]
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublicBookingRequest":
        email = _str(data.get("email") or data.get("clientEmail"))
        return cls(
            business_id=_int(data.get("businessId"), "businessId"),
            service_id=_int(data.get("serviceId"), "serviceId"),
            worker_id=_int(data.get("workerId"), "workerId"),
            date=_str(data.get("date")),
            start_time=_str(data.get("startTime")),
            name=_str(data.get("name") or data.get("clientName")),
            email=email.lower() if email else None,
            phone=_str(data.get("phone") or data.get("clientPhone")),
            notes=_str(data.get("notes")),
        )

    def validate(self, guest: bool) -> None:
        if not self.business_id or not self.service_id or not self.worker_id:
            raise ValueError("Missing required fields")
        if not self.date or not self.start_time:
            raise ValueError("Missing required fields")
        if guest:
            if not self.name or not self.email:
                raise ValueError("Name and email are required for guest bookings")
            validate_email(self.email)

    @property
    def start(self) -> datetime:
        return parse_start(self.date, self.start_time)


@dataclass
class BusinessSettingsRequest:
    name: Optional[str]
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    stripe_connect_id: Optional[str] = None
    payouts_enabled: Optional[bool] = None
    currency: Optional[str] = None
    opening_hours: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BusinessSettingsRequest":
        payouts = data.get("payoutsEnabled")
        currency = _str(data.get("currency"))
        return cls(
            name=_str(data.get("name")),
            description=_str(data.get("description")),
            address=_str(data.get("address")),
            phone=_str(data.get("phone")),
            email=_str(data.get("email")),
            stripe_connect_id=_str(data.get("stripeConnectId")),
            payouts_enabled=payouts if isinstance(payouts, bool) else None,
            currency=currency.lower() if currency else None,
            opening_hours=_str(data.get("openingHours")),
        )

    def validate(self) -> None:
        if not self.name:
            raise ValueError("Business name is required")
        if self.email:
            validate_email(self.email)
        if self.currency and len(self.currency) != 3:
            raise ValueError("Currency must be a 3-letter ISO code")


@dataclass
class BankAccountRequest:
    account_name: Optional[str]
    account_number: Optional[str]
    sort_code: Optional[str]
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BankAccountRequest":
        return cls(
            account_name=_str(data.get("accountName")),
            account_number=_str(data.get("accountNumber")),
            sort_code=_str(data.get("sortCode")),
            is_default=bool(data.get("isDefault", False)),
        )

    def validate(self) -> None:
        if not self.account_name or not self.account_number or not self.sort_code:
            raise ValueError("Account name, account number and sort code are required")
        if not ACCOUNT_NUMBER_RE.match(self.account_number):
            raise ValueError("Account number must be 8 digits")
        if not SORT_CODE_RE.match(self.sort_code):
            raise ValueError("Sort code must be in the format XX-XX-XX")


@dataclass
class PaymentIntentRequest:
    """DTO for ``POST /api/public/payments``.

    Everything except amount and business id is booking context carried in
    the PaymentIntent metadata so the webhook can create the booking.
    """

    amount: Optional[Decimal]
    business_id: Optional[int]
    service_id: Optional[int] = None
    worker_id: Optional[int] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    notes: Optional[str] = None
    # Set from the session, never from the request body.
    client_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentIntentRequest":
        raw_amount = data.get("amount")
        if isinstance(raw_amount, bool):
            amount = None
        else:
            try:
                amount = _decimal(raw_amount, "amount")
            except ValueError:
                amount = None
        email = _str(data.get("clientEmail"))
        return cls(
            amount=amount,
            business_id=_int(data.get("businessId"), "businessId"),
            service_id=_int(data.get("serviceId"), "serviceId"),
            worker_id=_int(data.get("workerId"), "workerId"),
            date=_str(data.get("date")),
            start_time=_str(data.get("startTime")),
            client_name=_str(data.get("clientName")),
            client_email=email.lower() if email else None,
            client_phone=_str(data.get("clientPhone")),
            notes=_str(data.get("notes")),
        )

    def validate(self) -> None:
        if self.amount is None or self.amount <= 0:
            raise ValueError("Invalid amount")
        if not self.business_id:
            raise ValueError("Business ID is required")

    def attach_payer(self, user: Any) -> None:
        """Book as the signed-in ``user``; typed contact details still win."""
        self.client_id = user.id
        self.client_name = self.client_name or user.name
        self.client_email = self.client_email or user.email
        self.client_phone = self.client_phone or user.phone

    def metadata(self) -> Dict[str, str]:
        """Stripe metadata values must be strings; empty keys are dropped."""
        values = {
            "businessId": self.business_id,
            "serviceId": self.service_id,
            "workerId": self.worker_id,
            "date": self.date,
            "startTime": self.start_time,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "clientEmail": self.client_email,
            "clientPhone": self.client_phone,
            "notes": self.notes,
        }
        return {key: str(value) for key, value in values.items() if value is not None}


@dataclass
class PasswordChangeRequest:
    current_password: Optional[str]
    new_password: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PasswordChangeRequest":
        return cls(
            current_password=data.get("currentPassword") or None,
            new_password=data.get("newPassword") or None,
        )

    def validate(self) -> None:
        if not self.current_password or not self.new_password:
            raise ValueError("Current password and new password are required")
