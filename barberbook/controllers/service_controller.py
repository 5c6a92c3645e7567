"""
Service Controller - CRUD for the services a business offers.
"""

import logging

from flask import Blueprint, jsonify

from barberbook.controllers.business_controller import MANAGERS, resolve_business
from barberbook.core.api_utils import get_json_body, handle_service_error
from barberbook.core.auth_decorators import require_roles
from barberbook.schemas.dtos import ServiceRequest
from barberbook.schemas.serializers import service_to_dict
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

service_bp = Blueprint("services", __name__, url_prefix="/api/services")


@service_bp.route("", methods=["GET"])
@require_roles()
def list_services():
    """List services of the caller's business (or ``businessId`` for admins and clients)."""
    try:
        with service_scope() as services:
            business = resolve_business(services)
            items = services.catalog.list_services(business.id)
            return jsonify([service_to_dict(s) for s in items]), 200
    except Exception as e:
        return handle_service_error(e, "listing services")


@service_bp.route("", methods=["POST"])
@require_roles(*MANAGERS)
def create_service():
    """Create a service.

    Expected JSON payload:
    {
        "name": "Haircut",
        "description": "Scissor cut and style",  // optional
        "duration": 30,                         // minutes, at least 5
        "price": 25.0                           // not negative
    }
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            business = resolve_business(services)
            service = services.catalog.create_service(business, ServiceRequest.from_dict(data))
            return jsonify(service_to_dict(service)), 201
    except Exception as e:
        return handle_service_error(e, "creating service")


@service_bp.route("/<int:service_id>", methods=["GET"])
@require_roles()
def get_service(service_id):
    try:
        with service_scope() as services:
            service = services.catalog.get_service(service_id)
            return jsonify(service_to_dict(service)), 200
    except Exception as e:
        return handle_service_error(e, "fetching service")


@service_bp.route("/<int:service_id>", methods=["PUT"])
@require_roles(*MANAGERS)
def update_service(service_id):
    try:
        data = get_json_body()
        with service_scope() as services:
            actor = services.current_actor()
            service = services.catalog.get_service(service_id)
            services.business.assert_manages(actor, service.business_id)
            service = services.catalog.update_service(service, ServiceRequest.from_dict(data))
            return jsonify(service_to_dict(service)), 200
    except Exception as e:
        return handle_service_error(e, "updating service")


@service_bp.route("/<int:service_id>", methods=["DELETE"])
@require_roles(*MANAGERS)
def delete_service(service_id):
    try:
        with service_scope() as services:
            actor = services.current_actor()
            service = services.catalog.get_service(service_id)
            services.business.assert_manages(actor, service.business_id)
            services.catalog.delete_service(service)
            return jsonify({"message": "Service deleted successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "deleting service")
