"""
Stripe payment integration for booking payments.

Card payments go through Stripe PaymentIntents. The platform keeps a
commission, Stripe keeps its processing fee and the business receives the
rest. When Stripe reports ``payment_intent.succeeded`` through the webhook
the booking described in the intent metadata is created and marked paid.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple

import stripe

from barberbook.core import config
from barberbook.core.exceptions import NotFoundError, PaymentProviderError
from barberbook.db.base import Booking, BookingStatus, Payment, PaymentStatus, User
from barberbook.repositories.business_repo import BusinessRepository
from barberbook.repositories.payment_repo import PaymentRepository
from barberbook.schemas.dtos import PaymentIntentRequest, PublicBookingRequest
from barberbook.services.booking_service import BookingService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")
BOOKING_METADATA_KEYS = (
    "businessId",
    "serviceId",
    "workerId",
    "date",
    "startTime",
    "clientName",
    "clientEmail",
    "clientPhone",
    "notes",
)


@dataclass(frozen=True)
class FeeBreakdown:
    amount: Decimal
    platform_fee: Decimal
    stripe_fee: Decimal
    business_amount: Decimal

    @property
    def amount_in_cents(self) -> int:
        return int((self.amount * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def to_dict(self) -> Dict[str, float]:
        return {
            "amount": float(self.amount),
            "platformFee": float(self.platform_fee),
            "stripeFee": float(self.stripe_fee),
            "businessAmount": float(self.business_amount),
        }


def compute_fees(amount: Decimal, platform_fee_percent: Optional[Decimal] = None) -> FeeBreakdown:
    """Split a charge into platform fee, Stripe fee and business payout.

    platform = amount * PLATFORM_FEE_PERCENT / 100
    stripe   = amount * 2.9 / 100 + 0.30
    business = amount - platform - stripe

    Every figure is rounded half-up to cents.
    """
    if platform_fee_percent is None:
        platform_fee_percent = config.get_platform_fee_percent()
    amount = Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    platform_fee = (amount * platform_fee_percent / HUNDRED).quantize(
        CENTS, rounding=ROUND_HALF_UP
    )
    stripe_fee = (
        amount * config.STRIPE_FEE_PERCENT / HUNDRED + config.STRIPE_FIXED_FEE
    ).quantize(CENTS, rounding=ROUND_HALF_UP)
    return FeeBreakdown(
        amount=amount,
        platform_fee=platform_fee,
        stripe_fee=stripe_fee,
        business_amount=amount - platform_fee - stripe_fee,
    )


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read a key from a Stripe object or a plain dict."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def verify_webhook_event(payload: bytes, signature: Optional[str]):
    """Verify a webhook payload with the endpoint secret.

    Raises:
        ValueError: malformed payload, bad signature or missing secret
    """
    secret = config.get_stripe_webhook_secret()
    if not secret:
        raise ValueError("Webhook secret is not configured")
    if not signature:
        raise ValueError("Missing Stripe-Signature header")
    try:
        return stripe.Webhook.construct_event(payload, signature, secret)
    except stripe.SignatureVerificationError as e:
        raise ValueError(f"Webhook signature verification failed: {e}")


class PaymentService:
    def __init__(
        self,
        payment_repo: PaymentRepository,
        business_repo: BusinessRepository,
        booking_service: BookingService,
    ):
        self.payment_repo = payment_repo
        self.business_repo = business_repo
        self.booking_service = booking_service

    def create_payment_intent(
        self, request: PaymentIntentRequest, payer: Optional[User] = None
    ) -> Tuple[Payment, str]:
        """Create a Stripe PaymentIntent and a pending Payment record.

        A signed-in ``payer`` is recorded on the Payment and in the intent
        metadata, so the webhook books the slot in their name.

        Returns:
            ``(payment, client_secret)``; the secret is handed to Stripe.js.

        Raises:
            ValueError: invalid amount or missing business
            NotFoundError: unknown business
            PaymentProviderError: Stripe not configured or request failed
        """
        request.validate()
        if payer is not None:
            request.attach_payer(payer)
        business = self.business_repo.get_by_id(request.business_id)
        if business is None:
            raise NotFoundError("Business not found")

        secret_key = config.get_stripe_secret_key()
        if not secret_key:
            raise PaymentProviderError("Payments are not configured")

        fees = compute_fees(request.amount)
        currency = (
            business.settings.currency if business.settings else config.DEFAULT_CURRENCY
        )
        metadata = request.metadata()
        metadata.update(
            {
                "platformFee": str(fees.platform_fee),
                "stripeFee": str(fees.stripe_fee),
                "businessAmount": str(fees.business_amount),
            }
        )

        stripe.api_key = secret_key
        try:
            intent = stripe.PaymentIntent.create(
                amount=fees.amount_in_cents,
                currency=currency,
                metadata=metadata,
                description=f"Booking at {business.name}",
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error(
                "Stripe error creating payment intent",
                extra={"context": {"business_id": business.id, "error": str(e)}},
                exc_info=True,
            )
            raise PaymentProviderError("Payment processing error") from e

        payment = self.payment_repo.add(
            Payment(
                amount=fees.amount,
                platform_fee_amount=fees.platform_fee,
                stripe_fee_amount=fees.stripe_fee,
                business_amount=fees.business_amount,
                currency=currency,
                status=PaymentStatus.PENDING,
                stripe_payment_id=_get(intent, "id"),
                business_id=business.id,
                client_id=request.client_id,
            )
        )
        logger.info(
            "Payment intent created",
            extra={
                "context": {
                    "payment_id": payment.id,
                    "stripe_payment_id": payment.stripe_payment_id,
                    "amount": str(fees.amount),
                }
            },
        )
        return payment, _get(intent, "client_secret")

    def update_status(self, payment_intent_id: Optional[str], status: Optional[str]) -> Payment:
        if not payment_intent_id:
            raise ValueError("Payment intent ID is required")
        status = (status or PaymentStatus.COMPLETED).lower()
        if status not in PaymentStatus.ALL:
            raise ValueError("Invalid payment status")
        payment = self.payment_repo.get_by_stripe_id(payment_intent_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        payment.status = status
        if status == PaymentStatus.COMPLETED and payment.booking is not None:
            payment.booking.is_paid = True
        return self.payment_repo.save(payment)

    # Webhook

    def handle_event(self, event: Any) -> Dict[str, Any]:
        """Apply a verified Stripe event. Unknown event types are acknowledged."""
        event_type = _get(event, "type")
        intent = _get(_get(event, "data"), "object")
        logger.info(
            "Stripe webhook received",
            extra={"context": {"event_type": event_type, "intent_id": _get(intent, "id")}},
        )

        if event_type == "payment_intent.succeeded":
            self._on_intent_succeeded(intent)
        elif event_type == "payment_intent.payment_failed":
            self._on_intent_failed(intent)
        return {"received": True}

    def _payment_for_intent(self, intent: Any) -> Optional[Payment]:
        intent_id = _get(intent, "id")
        if not intent_id:
            return None
        return self.payment_repo.get_by_stripe_id(intent_id)

    def _on_intent_succeeded(self, intent: Any) -> None:
        payment = self._payment_for_intent(intent)
        if payment is not None:
            payment.status = PaymentStatus.COMPLETED
            self.payment_repo.save(payment)

        if payment is not None and payment.booking is not None:
            payment.booking.is_paid = True
            self.payment_repo.save(payment)
            return

        booking = self._create_booking_from_metadata(
            _get(intent, "metadata", {}), payer=self._payer_for(payment, intent)
        )
        if booking is not None and payment is not None:
            payment.booking_id = booking.id
            self.payment_repo.save(payment)

    def _payer_for(self, payment: Optional[Payment], intent: Any) -> Optional[User]:
        """The signed-in user who started the payment, if there was one."""
        if payment is not None and payment.client is not None:
            return payment.client
        raw_id = _get(_get(intent, "metadata", {}), "clientId")
        try:
            client_id = int(raw_id) if raw_id else None
        except (TypeError, ValueError):
            client_id = None
        if client_id is None:
            return None
        return self.booking_service.user_repo.get_by_id(client_id)

    def _on_intent_failed(self, intent: Any) -> None:
        payment = self._payment_for_intent(intent)
        if payment is None:
            logger.warning(
                "Failed intent has no payment record",
                extra={"context": {"intent_id": _get(intent, "id")}},
            )
            return
        payment.status = PaymentStatus.FAILED
        self.payment_repo.save(payment)

    def _create_booking_from_metadata(
        self, metadata: Any, payer: Optional[User] = None
    ) -> Optional[Booking]:
        data = {key: _get(metadata, key) for key in BOOKING_METADATA_KEYS}
        if not data.get("startTime"):
            data["startTime"] = _get(metadata, "time")
        if not (data["businessId"] and data["serviceId"] and data["workerId"]):
            logger.info("Payment intent carries no booking details")
            return None

        try:
            request = PublicBookingRequest.from_dict(data)
            booking = self.booking_service.create_public_booking(request, actor=payer)
        except (ValueError, NotFoundError) as e:
            # The charge went through; staff must resolve the slot by hand.
            logger.error(
                "Could not create booking for paid intent",
                extra={"context": {"metadata": data, "error": str(e)}},
            )
            return None

        booking.status = BookingStatus.CONFIRMED
        booking.is_paid = True
        return self.booking_service.booking_repo.save(booking)
