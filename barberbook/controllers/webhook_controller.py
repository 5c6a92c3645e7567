"""
Webhook Controller - Stripe event callbacks.
"""

import logging

from flask import Blueprint, jsonify, request

from barberbook.core.api_utils import error_response, handle_service_error
from barberbook.services.payment_service import verify_webhook_event
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")


@webhook_bp.route("/stripe", methods=["POST"])
def stripe_webhook():
    """Verify the ``Stripe-Signature`` header and apply the event.

    Returns ``{"received": true}``; 400 when the payload or signature is bad.
    """
    payload = request.get_data()
    signature = request.headers.get("Stripe-Signature")
    try:
        event = verify_webhook_event(payload, signature)
    except ValueError as e:
        logger.warning(
            "Rejected Stripe webhook",
            extra={"context": {"error": str(e), "remote_addr": request.remote_addr}},
        )
        return error_response("Webhook signature verification failed", 400)

    try:
        with service_scope() as services:
            return jsonify(services.payments.handle_event(event)), 200
    except Exception as e:
        return handle_service_error(e, "processing Stripe webhook")
