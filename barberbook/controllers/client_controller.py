"""
Client Controller - customers linked to a business.
"""

import logging

from flask import Blueprint, jsonify

from barberbook.controllers.business_controller import MANAGERS, resolve_business
from barberbook.core.api_utils import get_json_body, handle_service_error
from barberbook.core.auth_decorators import require_roles
from barberbook.db.base import Role
from barberbook.schemas.dtos import StaffRequest
from barberbook.schemas.serializers import user_to_dict
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

client_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


def scope_for(services):
    """Business a client lookup is restricted to; None lets admins see any client."""
    actor = services.current_actor()
    if actor.role == Role.ADMIN:
        return None
    return resolve_business(services)


@client_bp.route("", methods=["GET"])
@require_roles(*MANAGERS)
def list_clients():
    try:
        with service_scope() as services:
            business = resolve_business(services)
            clients = services.clients.list_clients(business)
            return jsonify([user_to_dict(c) for c in clients]), 200
    except Exception as e:
        return handle_service_error(e, "listing clients")


@client_bp.route("", methods=["POST"])
@require_roles(*MANAGERS)
def add_client():
    """Add a client to the business.

    An existing account with the same email is linked instead of duplicated.

    Expected JSON payload:
    {"name": "Carl", "email": "carl@example.com", "phone": "555-0199"}
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            business = resolve_business(services)
            client = services.clients.add_client(business, StaffRequest.from_dict(data))
            return jsonify(user_to_dict(client)), 201
    except Exception as e:
        return handle_service_error(e, "adding client")


@client_bp.route("/<int:client_id>", methods=["GET"])
@require_roles(*MANAGERS)
def get_client(client_id):
    try:
        with service_scope() as services:
            client = services.clients.get_client(scope_for(services), client_id)
            return jsonify(user_to_dict(client)), 200
    except Exception as e:
        return handle_service_error(e, "fetching client")


@client_bp.route("/<int:client_id>", methods=["PUT"])
@require_roles(*MANAGERS)
def update_client(client_id):
    try:
        data = get_json_body()
        with service_scope() as services:
            client = services.clients.get_client(scope_for(services), client_id)
            client = services.clients.update_client(client, StaffRequest.from_dict(data))
            return jsonify(user_to_dict(client)), 200
    except Exception as e:
        return handle_service_error(e, "updating client")


@client_bp.route("/<int:client_id>", methods=["DELETE"])
@require_roles(*MANAGERS)
def remove_client(client_id):
    """Remove the client from the business. Refused while bookings exist."""
    try:
        with service_scope() as services:
            business = resolve_business(services)
            client = services.clients.get_client(business, client_id)
            services.clients.remove_client(business, client)
            return jsonify({"message": "Client removed successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "removing client")
