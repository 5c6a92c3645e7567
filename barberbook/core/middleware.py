"""
Request middleware: security headers and role gating for dashboard pages.

Security headers come from flask-talisman. Every response gets
``X-Content-Type-Options: nosniff``, ``X-Frame-Options: DENY`` and
``Referrer-Policy: strict-origin-when-cross-origin``. Outside development a
Content-Security-Policy that admits Stripe.js is added as well.

Page gating mirrors the dashboard layout:

    /admin     -> ADMIN
    /business  -> ADMIN, BUSINESS_OWNER
    /worker    -> ADMIN, BUSINESS_OWNER, WORKER

Anonymous visitors are sent to the sign-in page with a ``callbackUrl``;
signed-in users without the role land on ``/unauthorized``. API routes are
not gated here; they use ``require_roles``.
"""

import logging
from typing import Dict, Optional, Tuple

from flask import Flask, redirect, request, url_for
from flask_login import current_user
from flask_talisman import Talisman

from barberbook.core.config import is_production
from barberbook.db.base import Role

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("/admin", (Role.ADMIN,)),
    ("/business", (Role.ADMIN, Role.BUSINESS_OWNER)),
    ("/worker", (Role.ADMIN, Role.BUSINESS_OWNER, Role.WORKER)),
)

STRIPE_CSP: Dict[str, object] = {
    "default-src": "'self'",
    "script-src": ["'self'", "'unsafe-inline'", "https://js.stripe.com"],
    "style-src": ["'self'", "'unsafe-inline'"],
    "img-src": ["'self'", "data:", "blob:", "https://*.stripe.com"],
    "font-src": "'self'",
    "frame-src": [
        "'self'",
        "https://js.stripe.com",
        "https://hooks.stripe.com",
    ],
    "connect-src": ["'self'", "https://api.stripe.com"],
    "object-src": "'none'",
    "base-uri": "'self'",
    "form-action": "'self'",
    "frame-ancestors": "'none'",
}

talisman = Talisman()


def required_roles_for(path: str) -> Optional[Tuple[str, ...]]:
    """Return the roles allowed on ``path`` or None when the path is public."""
    for prefix, roles in PROTECTED_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return roles
    return None


def init_security_headers(app: Flask) -> None:
    production = is_production()
    talisman.init_app(
        app,
        force_https=production,
        strict_transport_security=production,
        session_cookie_secure=production,
        content_security_policy=STRIPE_CSP if production else None,
        frame_options="DENY",
        referrer_policy="strict-origin-when-cross-origin",
    )


def init_role_gate(app: Flask) -> None:
    @app.before_request
    def gate_dashboard_pages():
        roles = required_roles_for(request.path)
        if roles is None:
            return None

        if not current_user.is_authenticated:
            return redirect(url_for("pages.signin", callbackUrl=request.path))

        if current_user.role not in roles:
            logger.warning(
                "Dashboard access denied",
                extra={
                    "context": {
                        "path": request.path,
                        "user_id": current_user.id,
                        "role": current_user.role,
                    }
                },
            )
            return redirect(url_for("pages.unauthorized"))
        return None


def init_middleware(app: Flask) -> None:
    init_security_headers(app)
    init_role_gate(app)
