"""
Public Controller - unauthenticated routes behind the public booking page:
business directory, guest bookings and card payments.
"""

import logging

from flask import Blueprint, jsonify
from flask_login import current_user

from barberbook.core.api_utils import error_response, get_json_body, handle_service_error
from barberbook.core.auth_decorators import require_roles
from barberbook.core.exceptions import PaymentProviderError
from barberbook.db.base import Role
from barberbook.schemas.dtos import PaymentIntentRequest, PublicBookingRequest
from barberbook.schemas.serializers import (
    booking_to_dict,
    business_to_dict,
    payment_to_dict,
    public_settings_to_dict,
    service_to_dict,
)
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

public_bp = Blueprint("public", __name__, url_prefix="/api/public")


@public_bp.route("/businesses", methods=["GET"])
def list_businesses():
    try:
        with service_scope() as services:
            businesses = services.business.list_public()
            return jsonify({"businesses": [business_to_dict(b) for b in businesses]}), 200
    except Exception as e:
        return handle_service_error(e, "listing public businesses")


@public_bp.route("/businesses/<int:business_id>", methods=["GET"])
def get_business(business_id):
    try:
        with service_scope() as services:
            business = services.business.get_public(business_id)
            return jsonify(business_to_dict(business)), 200
    except Exception as e:
        return handle_service_error(e, "fetching public business")


@public_bp.route("/businesses/<int:business_id>/services", methods=["GET"])
def list_business_services(business_id):
    try:
        with service_scope() as services:
            business = services.business.get_public(business_id)
            items = services.catalog.list_services(business.id)
            return jsonify([service_to_dict(s) for s in items]), 200
    except Exception as e:
        return handle_service_error(e, "listing public services")


@public_bp.route("/businesses/<int:business_id>/workers", methods=["GET"])
def list_business_workers(business_id):
    """Workers by name only; contact details stay private."""
    try:
        with service_scope() as services:
            business = services.business.get_public(business_id)
            workers = services.staff.list_workers(business)
            return jsonify([{"id": w.id, "name": w.name} for w in workers]), 200
    except Exception as e:
        return handle_service_error(e, "listing public workers")


@public_bp.route("/businesses/<int:business_id>/settings", methods=["GET"])
def get_business_settings(business_id):
    try:
        with service_scope() as services:
            business = services.business.get_public(business_id)
            business, settings = services.business.get_settings(business)
            return jsonify(public_settings_to_dict(business, settings)), 200
    except Exception as e:
        return handle_service_error(e, "fetching public settings")


@public_bp.route("/bookings", methods=["POST"])
def create_public_booking():
    """Book a slot as a guest or as the signed-in user.

    Expected JSON payload:
    {
        "businessId": 1, "serviceId": 2, "workerId": 3,
        "date": "2025-03-14", "startTime": "10:30",
        "name": "Guest Name",            // required for guests
        "email": "guest@example.com",    // required for guests
        "phone": "555-0123", "notes": "..."
    }
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor() if current_user.is_authenticated else None
            booking = services.bookings.create_public_booking(
                PublicBookingRequest.from_dict(data), actor=actor
            )
            return jsonify(booking_to_dict(booking)), 201
    except Exception as e:
        return handle_service_error(e, "creating public booking")


@public_bp.route("/payments", methods=["POST"])
def create_payment():
    """Create a Stripe PaymentIntent for a booking.

    Expected JSON payload:
    {
        "amount": 25.0,
        "businessId": 1,
        "serviceId": 2, "workerId": 3, "date": "2025-03-14", "startTime": "10:30",
        "clientName": "...", "clientEmail": "...", "notes": "..."
    }

    Returns ``{"clientSecret": ..., "paymentId": ...}``; the booking itself is
    created by the webhook once Stripe confirms the charge. Signed-in clients
    pay, and later book, as themselves.
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            payer = services.current_actor() if current_user.is_authenticated else None
            payment, client_secret = services.payments.create_payment_intent(
                PaymentIntentRequest.from_dict(data), payer=payer
            )
            return jsonify({"clientSecret": client_secret, "paymentId": payment.id}), 200
    except PaymentProviderError as e:
        logger.error(f"Payment provider error: {e}")
        return error_response(str(e), 500)
    except Exception as e:
        return handle_service_error(e, "creating payment intent")


@public_bp.route("/payments", methods=["PUT"])
@require_roles(Role.ADMIN)
def update_payment():
    """Manually set a payment's status: ``{"paymentIntentId": "pi_...", "status": "completed"}``."""
    try:
        data = get_json_body()
        with service_scope() as services:
            payment = services.payments.update_status(
                data.get("paymentIntentId"), data.get("status")
            )
            return jsonify(payment_to_dict(payment)), 200
    except Exception as e:
        return handle_service_error(e, "updating payment status")
