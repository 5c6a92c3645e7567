"""
Worker Controller - staff accounts employed by a business.
"""

import logging

from flask import Blueprint, jsonify

from barberbook.controllers.business_controller import MANAGERS, resolve_business
from barberbook.core.api_utils import get_json_body, handle_service_error
from barberbook.core.auth_decorators import require_roles
from barberbook.core.exceptions import NotFoundError
from barberbook.db.base import Role
from barberbook.schemas.dtos import StaffRequest
from barberbook.schemas.serializers import user_to_dict
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

worker_bp = Blueprint("workers", __name__, url_prefix="/api/workers")


def resolve_worker_business(services, worker_id: int):
    """Owners act on their own business; admins act on the worker's employer."""
    actor = services.current_actor()
    if actor.role != Role.ADMIN:
        return resolve_business(services)
    worker = services.user_repo.get_by_id(worker_id)
    if worker is None:
        raise NotFoundError("Worker not found")
    if worker.role != Role.WORKER:
        raise ValueError("User is not a worker")
    return services.business.resolve_business(actor, worker.business_id)


@worker_bp.route("", methods=["GET"])
@require_roles(*MANAGERS)
def list_workers():
    try:
        with service_scope() as services:
            business = resolve_business(services)
            workers = services.staff.list_workers(business)
            return jsonify([user_to_dict(w) for w in workers]), 200
    except Exception as e:
        return handle_service_error(e, "listing workers")


@worker_bp.route("", methods=["POST"])
@require_roles(*MANAGERS)
def create_worker():
    """Create a worker account bound to the business.

    Expected JSON payload:
    {
        "name": "Wes",
        "email": "wes@example.com",
        "password": "...",
        "phone": "555-0101"  // optional
    }
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            business = resolve_business(services)
            worker = services.staff.create_worker(business, StaffRequest.from_dict(data))
            return jsonify(user_to_dict(worker)), 201
    except Exception as e:
        return handle_service_error(e, "creating worker")


@worker_bp.route("/<int:worker_id>", methods=["GET"])
@require_roles(*MANAGERS)
def get_worker(worker_id):
    try:
        with service_scope() as services:
            worker = services.staff.get_worker(resolve_worker_business(services, worker_id), worker_id)
            return jsonify(user_to_dict(worker)), 200
    except Exception as e:
        return handle_service_error(e, "fetching worker")


@worker_bp.route("/<int:worker_id>", methods=["PUT"])
@require_roles(*MANAGERS)
def update_worker(worker_id):
    try:
        data = get_json_body()
        with service_scope() as services:
            worker = services.staff.get_worker(resolve_worker_business(services, worker_id), worker_id)
            worker = services.staff.update_worker(worker, StaffRequest.from_dict(data))
            return jsonify(user_to_dict(worker)), 200
    except Exception as e:
        return handle_service_error(e, "updating worker")


@worker_bp.route("/<int:worker_id>", methods=["DELETE"])
@require_roles(*MANAGERS)
def delete_worker(worker_id):
    try:
        with service_scope() as services:
            worker = services.staff.get_worker(resolve_worker_business(services, worker_id), worker_id)
            services.staff.delete_worker(worker)
            return jsonify({"message": "Worker deleted successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "deleting worker")

