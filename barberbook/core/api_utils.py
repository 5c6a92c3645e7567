"""
Common API utilities for consistent response formatting across all controllers.
"""

import logging
from datetime import date, datetime, time
from typing import Any, Optional

from flask import jsonify, request

from barberbook.core.exceptions import NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int) -> tuple:
    """
    Standardized error body for every API route: ``{"message": ...}``.

    Args:
        message: Human-readable explanation
        status_code: HTTP status code (401/403/404/400/500)

    Returns:
        Tuple of (json_response, status_code)
    """
    return jsonify({"message": message}), status_code


def handle_service_error(exc: Exception, action: str) -> tuple:
    """Translate an exception raised by a service into an API error response.

    Args:
        exc: Exception raised inside the handler
        action: Short description for the log line ("creating booking")
    """
    context = {"path": request.path, "method": request.method}
    if isinstance(exc, NotFoundError):
        logger.info(f"Not found while {action}: {exc}", extra={"context": context})
        return error_response(str(exc) or "Not found", 404)
    if isinstance(exc, PermissionDeniedError):
        logger.warning(f"Forbidden while {action}: {exc}", extra={"context": context})
        return error_response(str(exc) or "Forbidden", 403)
    if isinstance(exc, ValueError):
        logger.warning(
            f"Validation error while {action}: {exc}", extra={"context": context}
        )
        return error_response(str(exc), 400)
    logger.exception(f"Unexpected error while {action}", extra={"context": context})
    return error_response("Internal server error", 500)


def get_json_body() -> dict:
    """Return the JSON request body or raise ValueError for malformed input."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValueError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def parse_int(value: Any, field: str) -> Optional[int]:
    """Parse an optional integer identifier from a query string or JSON body."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field}")


def isoformat(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)
