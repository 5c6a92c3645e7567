"""
Centralized configuration module for application-wide settings.

Values are read from the process environment. A local ``.env`` file is
loaded once at import time (python-dotenv) so development setups do not
need to export variables by hand.
"""

import logging
import os
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

WEAK_SECRETS = ("dev-secret-change-me", "dev-jwt-secret-change-me", "secret123")


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ===========================
# Environment
# ===========================


def is_production() -> bool:
    return os.getenv("FLASK_ENV", "development").lower() == "production"


def is_testing() -> bool:
    return _env_flag("TESTING")


def _signing_secret(env_name: str, default: str) -> str:
    secret = os.getenv(env_name, default)
    if is_production() and (secret in WEAK_SECRETS or len(secret) < 32):
        raise ValueError(
            f"Production deployment requires strong {env_name} (min 32 chars). "
            f"Set {env_name} environment variable."
        )
    return secret


def get_secret_key() -> str:
    """Return the Flask session signing key.

    Raises:
        ValueError: In production when the key is missing, a known weak
            default, or shorter than 32 characters.
    """
    return _signing_secret("FLASK_SECRET_KEY", "dev-secret-change-me")


def get_jwt_secret_key() -> str:
    """Return the Bearer token signing key; same production rules as above."""
    return _signing_secret("JWT_SECRET_KEY", "dev-jwt-secret-change-me")


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///barberbook.db")


# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from the APP_TZ environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured
        or not recognised)
    """
    tz_name = os.getenv("APP_TZ", "UTC")
    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in APP_TZ. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


def local_now() -> datetime:
    """Current wall-clock time in APP_TZ as a naive datetime.

    Booking times are stored naive in the business's local time.
    """
    return datetime.now(APP_TZ).replace(tzinfo=None)


# ===========================
# Bootstrap admin
# ===========================


def get_admin_credentials() -> Optional[Tuple[str, str]]:
    """Return ``(username, password)`` for the bootstrap admin, if configured.

    The username doubles as the admin's login email.
    """
    username = os.getenv("ADMIN_USERNAME")
    password = os.getenv("ADMIN_PASSWORD")
    if not username or not password:
        return None
    return username.strip(), password


# ===========================
# Stripe Configuration
# ===========================


def get_stripe_secret_key() -> Optional[str]:
    return os.getenv("STRIPE_SECRET_KEY")


def get_stripe_publishable_key() -> str:
    return os.getenv("STRIPE_PUBLISHABLE_KEY", "")


def get_stripe_webhook_secret() -> Optional[str]:
    return os.getenv("STRIPE_WEBHOOK_SECRET")


def get_platform_fee_percent() -> Decimal:
    """Platform commission charged on every payment, in percent (default 2)."""
    raw = os.getenv("PLATFORM_FEE_PERCENT", "2")
    try:
        return Decimal(raw)
    except ArithmeticError:
        logger.warning(f"Invalid PLATFORM_FEE_PERCENT '{raw}', using 2")
        return Decimal("2")


# Stripe's standard card pricing: 2.9% + 30 cents per successful charge.
STRIPE_FEE_PERCENT = Decimal("2.9")
STRIPE_FIXED_FEE = Decimal("0.30")
DEFAULT_CURRENCY = "usd"


# ===========================
# Rate limiting
# ===========================


def is_rate_limit_enabled() -> bool:
    return _env_flag("RATE_LIMIT_ENABLED", "1")


def log_config_summary() -> None:
    """Log the active configuration without secrets."""
    logger.info(
        "Configuration loaded",
        extra={
            "context": {
                "environment": os.getenv("FLASK_ENV", "development"),
                "timezone": str(APP_TZ),
                "stripe_configured": bool(get_stripe_secret_key()),
                "webhook_configured": bool(get_stripe_webhook_secret()),
                "admin_bootstrap": get_admin_credentials() is not None,
                "rate_limit_enabled": is_rate_limit_enabled(),
            }
        },
    )
