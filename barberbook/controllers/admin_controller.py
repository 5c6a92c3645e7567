"""
Admin Controller - platform administration.

Every route answers 401 to anyone who is not an ADMIN.
"""

import logging

from flask import Blueprint, jsonify

from barberbook.core.api_utils import get_json_body, handle_service_error, parse_int
from barberbook.core.auth_decorators import require_roles
from barberbook.db.base import Role
from barberbook.schemas.serializers import business_to_dict, user_summary
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

admin_only = require_roles(Role.ADMIN, denied_status=401)


def admin_business_to_dict(business):
    data = business_to_dict(business)
    data["owner"] = user_summary(business.owner)
    return data


@admin_bp.route("/businesses", methods=["GET"])
@admin_only
def list_businesses():
    try:
        with service_scope() as services:
            businesses = services.admin.list_businesses()
            return jsonify([admin_business_to_dict(b) for b in businesses]), 200
    except Exception as e:
        return handle_service_error(e, "listing businesses")


@admin_bp.route("/businesses", methods=["POST"])
@admin_only
def create_business():
    """Create a business for an existing user.

    Expected JSON payload:
    {"name": "Sharp Cuts", "description": "...", "ownerId": 4}
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            business = services.admin.create_business(
                data.get("name"),
                data.get("description"),
                parse_int(data.get("ownerId"), "ownerId"),
            )
            return jsonify(admin_business_to_dict(business)), 201
    except Exception as e:
        return handle_service_error(e, "creating business")


@admin_bp.route("/businesses/<int:business_id>", methods=["GET"])
@admin_only
def get_business(business_id):
    try:
        with service_scope() as services:
            business = services.admin.get_business(business_id)
            return jsonify(admin_business_to_dict(business)), 200
    except Exception as e:
        return handle_service_error(e, "fetching business")


@admin_bp.route("/businesses/<int:business_id>", methods=["PATCH"])
@admin_only
def update_business(business_id):
    try:
        data = get_json_body()
        with service_scope() as services:
            business = services.admin.update_business(business_id, data)
            return jsonify(admin_business_to_dict(business)), 200
    except Exception as e:
        return handle_service_error(e, "updating business")


@admin_bp.route("/businesses/<int:business_id>", methods=["DELETE"])
@admin_only
def delete_business(business_id):
    try:
        with service_scope() as services:
            services.admin.delete_business(business_id)
            return jsonify({"message": "Business deleted successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "deleting business")


@admin_bp.route("/stats", methods=["GET"])
@admin_only
def platform_stats():
    try:
        with service_scope() as services:
            return jsonify(services.admin.stats()), 200
    except Exception as e:
        return handle_service_error(e, "computing platform stats")
