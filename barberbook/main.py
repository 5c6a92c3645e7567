import logging
import os

from flask import Flask, jsonify, redirect, request, url_for
from flask_login import LoginManager

from barberbook.core.api_utils import error_response
from barberbook.core.config import (
    get_admin_credentials,
    get_secret_key,
    is_production,
    is_rate_limit_enabled,
    is_testing,
    log_config_summary,
)

logger = logging.getLogger(__name__)


def _init_observability(app: Flask, env: str) -> None:
    """Sentry when SENTRY_DSN is set, Prometheus metrics on /metrics."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=env,
            release=os.getenv("GIT_SHA", "unknown"),
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=0.1,
            send_default_pii=False,
        )
        logger.info("Sentry initialized", extra={"context": {"environment": env}})
    else:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": env}},
        )

    from prometheus_flask_exporter import PrometheusMetrics

    if app.config.get("TESTING"):
        # A fresh registry per app; the default one rejects duplicate metrics.
        from prometheus_client import CollectorRegistry

        metrics = PrometheusMetrics(app, registry=CollectorRegistry())
    else:
        metrics = PrometheusMetrics(app)
    try:
        metrics.info(
            "app_info",
            "Application information",
            version=os.getenv("GIT_SHA", "unknown"),
            environment=env,
        )
    except ValueError as e:
        logger.debug(
            "app_info metric already registered",
            extra={"context": {"error": str(e)}},
        )


def _init_login_manager(app: Flask) -> LoginManager:
    from barberbook.core.security import get_user_from_token
    from barberbook.db.base import User
    from barberbook.db.session import SessionLocal

    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.login_view = "pages.signin"  # type: ignore[assignment]

    @login_manager.user_loader
    def load_user(user_id):
        with SessionLocal() as db:
            user = db.get(User, int(user_id))
            if user and user.is_active:
                return user
        return None

    @login_manager.request_loader
    def load_user_from_request(request):
        """Load user from an ``Authorization: Bearer <jwt>`` header."""
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return None

        user_data = get_user_from_token(auth_header.split(" ", 1)[1])
        if not user_data:
            return None

        with SessionLocal() as db:
            user = db.get(User, user_data["user_id"])
            if user and user.is_active:
                return user
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        if request.path.startswith("/api/"):
            return error_response("Unauthorized", 401)
        return redirect(url_for("pages.signin", callbackUrl=request.path))

    return login_manager


def _register_error_handlers(app: Flask) -> None:
    def wants_json() -> bool:
        return request.path.startswith("/api/")

    @app.errorhandler(404)
    def not_found(e):
        if wants_json():
            return error_response("Not found", 404)
        return e

    @app.errorhandler(405)
    def method_not_allowed(e):
        if wants_json():
            return error_response("Method not allowed", 405)
        return e

    @app.errorhandler(429)
    def rate_limited(e):
        logger.warning(
            "Rate limit exceeded",
            extra={"context": {"path": request.path, "limit": str(e.description)}},
        )
        return jsonify({"message": "Too many requests"}), 429

    @app.errorhandler(500)
    def internal_error(e):
        logger.error(
            "Unhandled server error",
            extra={"context": {"path": request.path}},
            exc_info=True,
        )
        return error_response("Internal server error", 500)


def _register_blueprints(app: Flask) -> None:
    from barberbook.controllers.admin_controller import admin_bp
    from barberbook.controllers.auth_controller import auth_bp
    from barberbook.controllers.booking_controller import booking_bp
    from barberbook.controllers.business_controller import business_bp
    from barberbook.controllers.client_controller import client_bp
    from barberbook.controllers.health_controller import health_bp
    from barberbook.controllers.page_controller import pages_bp
    from barberbook.controllers.public_controller import public_bp
    from barberbook.controllers.service_controller import service_bp
    from barberbook.controllers.user_controller import user_bp
    from barberbook.controllers.webhook_controller import webhook_bp
    from barberbook.controllers.worker_controller import worker_bp
    from barberbook.core.csrf_config import csrf

    api_blueprints = (
        auth_bp,
        business_bp,
        service_bp,
        worker_bp,
        client_bp,
        booking_bp,
        public_bp,
        webhook_bp,
        admin_bp,
        user_bp,
        health_bp,
    )
    for bp in api_blueprints:
        # JSON endpoints authenticate by session cookie or bearer token and
        # are called from scripts and Stripe; forms are the CSRF surface.
        csrf.exempt(bp)
        app.register_blueprint(bp)

    app.register_blueprint(pages_bp)


def create_app() -> Flask:
    env = os.getenv("FLASK_ENV", "development")
    production = is_production()

    app = Flask(__name__)
    if is_testing():
        app.config["TESTING"] = True

    from barberbook.core.logging_config import setup_logging

    use_json_format = os.getenv("LOG_JSON", "1" if production else "0") == "1"
    setup_logging(
        app=app,
        log_level=os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG"),
        enable_sql_echo=os.getenv("SQL_ECHO", "0") == "1",
        log_to_file=os.getenv("LOG_TO_FILE", "0") == "1",
        use_json_format=use_json_format,
    )
    logger.info(
        "Logging configured",
        extra={"context": {"environment": env, "json_format": use_json_format}},
    )

    _init_observability(app, env)

    # Configuration
    app.config["SECRET_KEY"] = get_secret_key()

    # Cookie and Session Hardening
    app.config.setdefault("SESSION_COOKIE_SECURE", production)
    app.config.setdefault("SESSION_COOKIE_HTTPONLY", True)
    app.config.setdefault("SESSION_COOKIE_SAMESITE", "Lax")
    app.config.setdefault("REMEMBER_COOKIE_SECURE", production)
    app.config.setdefault("REMEMBER_COOKIE_HTTPONLY", True)

    # Rate limiting
    from barberbook.core.limiter_config import limiter

    app.config["RATELIMIT_ENABLED"] = is_rate_limit_enabled()
    limiter.init_app(app)
    if not is_rate_limit_enabled():
        limiter.enabled = False
        logger.info("Rate limiting disabled", extra={"context": {"testing": is_testing()}})

    # CSRF Protection for server-rendered forms
    from barberbook.core.csrf_config import csrf

    app.config["WTF_CSRF_ENABLED"] = not app.config.get("TESTING", False)
    app.config["WTF_CSRF_TIME_LIMIT"] = None
    app.config["WTF_CSRF_SSL_STRICT"] = production
    csrf.init_app(app)

    # Security headers and dashboard role gate
    from barberbook.core.middleware import init_middleware

    init_middleware(app)

    _init_login_manager(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    # Ensure database tables exist
    from barberbook.db.session import create_tables

    create_tables()

    if get_admin_credentials() is not None:
        from barberbook.db.seed import ensure_admin_user

        ensure_admin_user()

    log_config_summary()
    return app
