"""
Health controller - health check endpoint for monitoring.
"""

import logging

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from barberbook.db.session import SessionLocal

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
def health_check():
    """
    Check that the database answers ``SELECT 1``.

    Status codes:
        200: {"status": "healthy", "database": "ok"}
        503: {"status": "unhealthy", "database": "unreachable"}

    Note:
        - No authentication required (monitoring endpoint)
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return jsonify({"status": "healthy", "database": "ok"}), 200
    except SQLAlchemyError as e:
        logger.error(
            "Health check failed",
            extra={"context": {"endpoint": "/health", "error": str(e)}},
        )
        return jsonify({"status": "unhealthy", "database": "unreachable"}), 503
    finally:
        db.close()
