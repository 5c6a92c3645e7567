"""
Auth Controller - sign-up, credential login and session introspection (JSON API).

The HTML sign-in and sign-up forms live in the page controller and share
the same UserService calls.
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_user, logout_user

from barberbook.core.api_utils import error_response, get_json_body, handle_service_error
from barberbook.core.limiter_config import LOGIN_LIMIT, limiter
from barberbook.core.security import create_user_token
from barberbook.schemas.dtos import RegisterRequest
from barberbook.schemas.serializers import user_to_dict
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create an account.

    Expected JSON payload:
    {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "secret123",
        "role": "CLIENT"  // optional, CLIENT or BUSINESS_OWNER
    }

    Returns 201 with the user (never the password hash).
    """
    try:
        data = get_json_body()
        with service_scope() as services:
            user = services.users.register(RegisterRequest.from_dict(data))
            return jsonify(user_to_dict(user)), 201
    except Exception as e:
        return handle_service_error(e, "registering user")


@auth_bp.route("/auth/login", methods=["POST"])
@limiter.limit(LOGIN_LIMIT)
def login():
    """Start a session from email and password (JSON body or form fields).

    Returns:
    {
        "user": {...},
        "token": "<jwt usable as a Bearer token>"
    }
    """
    try:
        data = request.get_json(silent=True)
        if data is None:
            data = request.form
        elif not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")
        email = data.get("email") or data.get("username")
        password = data.get("password")
        if not (isinstance(email, str) and email and isinstance(password, str) and password):
            return error_response("Email and password are required", 400)

        with service_scope() as services:
            user = services.users.authenticate(email, password)
            if user is None:
                logger.warning(
                    "Failed login attempt",
                    extra={"context": {"email": str(email).lower()}},
                )
                return error_response("Invalid credentials", 401)

            login_user(user, remember=bool(data.get("remember")))
            logger.info(
                "User logged in",
                extra={"context": {"user_id": user.id, "role": user.role}},
            )
            return (
                jsonify(
                    {
                        "user": user_to_dict(user),
                        "token": create_user_token(user.id, user.email, user.role),
                    }
                ),
                200,
            )
    except Exception as e:
        return handle_service_error(e, "logging in")


@auth_bp.route("/auth/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logger.info("User logged out", extra={"context": {"user_id": current_user.id}})
    logout_user()
    return jsonify({"message": "Logged out"}), 200


@auth_bp.route("/auth/session", methods=["GET"])
def session_info():
    """Return the signed-in user or ``{"user": null}``."""
    if not current_user.is_authenticated:
        return jsonify({"user": None}), 200
    return jsonify({"user": user_to_dict(current_user)}), 200
