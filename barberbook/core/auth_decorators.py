"""
Authorization helpers for API routes.

Every human user authenticates through a Flask-Login session (sign-in form
or ``POST /api/auth/login``). Scripts may instead send
``Authorization: Bearer <jwt>``; the login manager's request loader turns
that into the same ``current_user``. Either way the role stored on the user
decides access.

DECORATOR GUIDE:
- @require_roles(): any authenticated user
- @require_roles(Role.BUSINESS_OWNER, Role.ADMIN): owner or admin only
- @require_roles(Role.ADMIN, denied_status=401): admin routes answer 401
  instead of 403 so they do not reveal that the route exists

Example:
    @booking_bp.route("", methods=["POST"])
    @require_roles(Role.BUSINESS_OWNER, Role.ADMIN)
    def create_booking():
        ...
"""

from functools import wraps
from typing import Any, Optional

from flask_login import current_user

from barberbook.core.api_utils import error_response


def get_current_user() -> Optional[Any]:
    """Return the authenticated user or None."""
    if current_user and getattr(current_user, "is_authenticated", False):
        return current_user
    return None


def require_roles(*roles: str, denied_status: int = 403):
    """Require an authenticated user, optionally holding one of ``roles``.

    Returns:
        - 401 if not authenticated
        - ``denied_status`` (403 by default) if the role is not allowed
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if user is None:
                return error_response("Unauthorized", 401)
            if roles and getattr(user, "role", None) not in roles:
                message = "Unauthorized" if denied_status == 401 else "Forbidden"
                return error_response(message, denied_status)
            return f(*args, **kwargs)

        return decorated_function

    return decorator
