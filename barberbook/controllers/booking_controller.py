"""
Booking Controller - staff-side booking management.

Role scoping:
- ADMIN: any business, selected with ``businessId``
- BUSINESS_OWNER: their own business
- WORKER: bookings assigned to them; may complete or cancel them
- CLIENT: their own bookings, read-only
"""

import logging

from flask import Blueprint, jsonify, request

from barberbook.controllers.business_controller import MANAGERS, requested_business_id
from barberbook.core.api_utils import get_json_body, handle_service_error
from barberbook.core.auth_decorators import require_roles
from barberbook.db.base import Role
from barberbook.schemas.dtos import BookingRequest
from barberbook.schemas.serializers import booking_to_dict
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

booking_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")


@booking_bp.route("", methods=["GET"])
@require_roles()
def list_bookings():
    """List bookings visible to the caller.

    Query params:
        businessId: required for admins
        status: PENDING | CONFIRMED | COMPLETED | CANCELLED
        date: YYYY-MM-DD
    """
    try:
        with service_scope() as services:
            actor = services.current_actor()
            business = None
            if actor.role in MANAGERS:
                business = services.business.resolve_business(actor, requested_business_id())
            bookings = services.bookings.list_for_actor(
                actor,
                business,
                status=request.args.get("status"),
                day=request.args.get("date"),
            )
            return jsonify([booking_to_dict(b) for b in bookings]), 200
    except Exception as e:
        return handle_service_error(e, "listing bookings")


@booking_bp.route("", methods=["POST"])
@require_roles(*MANAGERS)
def create_booking():
    """Create a booking.

    Expected JSON payload:
    {
        "date": "2025-03-14",
        "startTime": "10:30",
        "clientId": 7,
        "workerId": 3,
        "serviceId": 2,
        "status": "CONFIRMED",   // optional
        "notes": "...",          // optional
        "businessId": 1          // admins only
    }

    The end time is derived from the service duration. A worker already
    booked in the slot yields 400.
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            booking_request = BookingRequest.from_dict(data)
            business = services.business.resolve_business(actor, booking_request.business_id)
            booking = services.bookings.create_booking(business, booking_request)
            return jsonify(booking_to_dict(booking)), 201
    except Exception as e:
        return handle_service_error(e, "creating booking")


@booking_bp.route("/<int:booking_id>", methods=["GET"])
@require_roles()
def get_booking(booking_id):
    try:
        with service_scope() as services:
            actor = services.current_actor()
            booking = services.bookings.get_for_actor(actor, booking_id)
            return jsonify(booking_to_dict(booking)), 200
    except Exception as e:
        return handle_service_error(e, "fetching booking")


@booking_bp.route("/<int:booking_id>", methods=["PUT"])
@require_roles(*MANAGERS)
def update_booking(booking_id):
    """Replace a booking's slot, people, service and status (all fields required)."""
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            booking = services.bookings.get_booking(booking_id)
            services.business.assert_manages(actor, booking.business_id)
            booking = services.bookings.update_booking(booking, BookingRequest.from_dict(data))
            return jsonify(booking_to_dict(booking)), 200
    except Exception as e:
        return handle_service_error(e, "updating booking")


@booking_bp.route("/<int:booking_id>", methods=["PATCH"])
@require_roles(Role.ADMIN, Role.BUSINESS_OWNER, Role.WORKER)
def update_booking_status(booking_id):
    """Change only the status: ``{"status": "COMPLETED"}``."""
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            booking = services.bookings.get_booking(booking_id)
            booking = services.bookings.change_status(actor, booking, data.get("status"))
            return jsonify(booking_to_dict(booking)), 200
    except Exception as e:
        return handle_service_error(e, "updating booking status")


@booking_bp.route("/<int:booking_id>", methods=["DELETE"])
@require_roles(*MANAGERS)
def cancel_booking(booking_id):
    """Soft delete: the booking is kept with status CANCELLED."""
    try:
        with service_scope() as services:
            actor = services.current_actor()
            booking = services.bookings.get_booking(booking_id)
            services.business.assert_manages(actor, booking.business_id)
            services.bookings.cancel_booking(booking)
            return jsonify({"message": "Booking cancelled successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "cancelling booking")


@booking_bp.route("/<int:booking_id>/payment", methods=["PUT"])
@require_roles(*MANAGERS)
def update_payment_flag(booking_id):
    """Mark a booking paid or unpaid: ``{"isPaid": true}``."""
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            booking = services.bookings.get_booking(booking_id)
            services.business.assert_manages(actor, booking.business_id)
            booking = services.bookings.set_paid(booking, data.get("isPaid"))
            return jsonify(booking_to_dict(booking)), 200
    except Exception as e:
        return handle_service_error(e, "updating booking payment status")
