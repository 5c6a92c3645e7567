"""
User Controller - the signed-in user's own account.
"""

import logging

from flask import Blueprint, jsonify

from barberbook.core.api_utils import get_json_body, handle_service_error
from barberbook.core.auth_decorators import require_roles
from barberbook.core.config import local_now
from barberbook.db.base import Role
from barberbook.schemas.dtos import PasswordChangeRequest
from barberbook.schemas.serializers import booking_to_dict, service_to_dict, user_to_dict
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

user_bp = Blueprint("user", __name__, url_prefix="/api/user")


@user_bp.route("/account", methods=["GET"])
@require_roles()
def get_account():
    try:
        with service_scope() as services:
            actor = services.current_actor()
            return jsonify(services.users.account(actor)), 200
    except Exception as e:
        return handle_service_error(e, "fetching account")


@user_bp.route("/profile", methods=["PUT"])
@require_roles()
def update_profile():
    """Update display name and phone: ``{"name": "...", "phone": "..."}``."""
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            user = services.users.update_profile(actor, data.get("name"), data.get("phone"))
            return jsonify(user_to_dict(user)), 200
    except Exception as e:
        return handle_service_error(e, "updating profile")


@user_bp.route("/password", methods=["PUT"])
@require_roles()
def change_password():
    """Change password: ``{"currentPassword": "...", "newPassword": "..."}``.

    The new password needs 8+ characters with upper and lower case letters,
    a digit and a special character.
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            services.users.change_password(actor, PasswordChangeRequest.from_dict(data))
            return jsonify({"message": "Password updated successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "changing password")


@user_bp.route("/appointments", methods=["GET"])
@require_roles()
def upcoming_appointments():
    """Next five non-cancelled bookings relevant to the caller."""
    try:
        with service_scope() as services:
            actor = services.current_actor()
            bookings = services.bookings.upcoming_for_actor(actor, local_now(), limit=5)
            return jsonify([booking_to_dict(b) for b in bookings]), 200
    except Exception as e:
        return handle_service_error(e, "fetching appointments")


@user_bp.route("/services", methods=["GET"])
@require_roles()
def popular_services():
    """Four most-booked services: the caller's business for staff, platform-wide otherwise."""
    try:
        with service_scope() as services:
            actor = services.current_actor()
            business_id = None
            if actor.role in (Role.WORKER, Role.BUSINESS_OWNER):
                if actor.business_id is None:
                    return jsonify([]), 200
                business_id = actor.business_id
            items = services.catalog.most_booked(business_id=business_id, limit=4)
            return jsonify([service_to_dict(s) for s in items]), 200
    except Exception as e:
        return handle_service_error(e, "fetching popular services")
