"""
Business Controller - the owner's view of their business: profile, settings,
dashboard stats, payment history and payout bank accounts.

Admins may call every route on behalf of a business by passing
``businessId`` (query string or JSON body).
"""

import logging

from flask import Blueprint, jsonify, request

from barberbook.core.api_utils import get_json_body, handle_service_error, parse_int
from barberbook.core.auth_decorators import require_roles
from barberbook.core.config import local_now
from barberbook.db.base import Role
from barberbook.schemas.dtos import BankAccountRequest, BusinessSettingsRequest
from barberbook.schemas.serializers import (
    bank_account_to_dict,
    business_to_dict,
    payment_to_dict,
    settings_to_dict,
)
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

business_bp = Blueprint("business", __name__, url_prefix="/api/business")

MANAGERS = (Role.BUSINESS_OWNER, Role.ADMIN)


def requested_business_id():
    """``businessId`` from the query string, falling back to the JSON body."""
    raw = request.args.get("businessId")
    if raw is None and request.is_json:
        body = request.get_json(silent=True)
        if isinstance(body, dict):
            raw = body.get("businessId")
    return parse_int(raw, "businessId")


def resolve_business(services, create_missing: bool = False):
    actor = services.current_actor()
    return services.business.resolve_business(
        actor, requested_business_id(), create_missing=create_missing
    )


@business_bp.route("", methods=["GET"])
@require_roles(*MANAGERS)
def get_business():
    """Return the caller's business, creating "<name>'s Business" for owners without one."""
    try:
        with service_scope() as services:
            business = resolve_business(services, create_missing=True)
            return jsonify(business_to_dict(business)), 200
    except Exception as e:
        return handle_service_error(e, "fetching business")


@business_bp.route("/id", methods=["GET"])
@require_roles(*MANAGERS)
def get_business_id():
    try:
        with service_scope() as services:
            business = resolve_business(services, create_missing=True)
            return jsonify({"businessId": business.id}), 200
    except Exception as e:
        return handle_service_error(e, "fetching business id")


@business_bp.route("/settings", methods=["GET"])
@require_roles(*MANAGERS)
def get_settings():
    try:
        with service_scope() as services:
            business = resolve_business(services, create_missing=True)
            business, settings = services.business.get_settings(business)
            return jsonify(settings_to_dict(business, settings)), 200
    except Exception as e:
        return handle_service_error(e, "fetching business settings")


@business_bp.route("/settings", methods=["POST", "PUT"])
@require_roles(*MANAGERS)
def update_settings():
    """Create or update business profile and payout settings.

    Expected JSON payload:
    {
        "name": "Sharp Cuts",           // required
        "description": "...",
        "address": "...", "phone": "...", "email": "...",
        "stripeConnectId": "acct_123",
        "payoutsEnabled": true,
        "currency": "usd",
        "openingHours": "Mon-Sat 9-6"
    }
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            business = resolve_business(services, create_missing=True)
            business, settings = services.business.update_settings(
                business, BusinessSettingsRequest.from_dict(data)
            )
            return jsonify(settings_to_dict(business, settings)), 200
    except Exception as e:
        return handle_service_error(e, "updating business settings")


@business_bp.route("/stats", methods=["GET"])
@require_roles(*MANAGERS)
def get_stats():
    try:
        with service_scope() as services:
            business = resolve_business(services)
            return jsonify(services.business.stats(business, local_now())), 200
    except Exception as e:
        return handle_service_error(e, "computing business stats")


@business_bp.route("/payment-history", methods=["GET"])
@require_roles(*MANAGERS)
def payment_history():
    try:
        with service_scope() as services:
            business = resolve_business(services)
            payments = services.business.payment_history(business)
            return jsonify({"payments": [payment_to_dict(p) for p in payments]}), 200
    except Exception as e:
        return handle_service_error(e, "fetching payment history")


@business_bp.route("/bank-accounts", methods=["GET"])
@require_roles(*MANAGERS)
def list_bank_accounts():
    try:
        with service_scope() as services:
            business = resolve_business(services)
            accounts = services.business.list_bank_accounts(business)
            return jsonify({"bankAccounts": [bank_account_to_dict(a) for a in accounts]}), 200
    except Exception as e:
        return handle_service_error(e, "listing bank accounts")


@business_bp.route("/bank-accounts", methods=["POST"])
@require_roles(*MANAGERS)
def add_bank_account():
    """Add a payout account: 8-digit account number, sort code ``XX-XX-XX``."""
    try:
        data = get_json_body()
        with service_scope() as services:
            business = resolve_business(services)
            account = services.business.add_bank_account(
                business, BankAccountRequest.from_dict(data)
            )
            return jsonify(bank_account_to_dict(account)), 201
    except Exception as e:
        return handle_service_error(e, "adding bank account")


@business_bp.route("/bank-accounts/<int:account_id>", methods=["PUT"])
@require_roles(*MANAGERS)
def update_bank_account(account_id):
    try:
        data = get_json_body()
        with service_scope() as services:
            business = resolve_business(services)
            account = services.business.update_bank_account(
                business, account_id, BankAccountRequest.from_dict(data)
            )
            return jsonify(bank_account_to_dict(account)), 200
    except Exception as e:
        return handle_service_error(e, "updating bank account")


@business_bp.route("/bank-accounts/<int:account_id>", methods=["DELETE"])
@require_roles(*MANAGERS)
def delete_bank_account(account_id):
    try:
        with service_scope() as services:
            business = resolve_business(services)
            services.business.delete_bank_account(business, account_id)
            return jsonify({"message": "Bank account deleted successfully"}), 200
    except Exception as e:
        return handle_service_error(e, "deleting bank account")
