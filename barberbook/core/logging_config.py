"""
Logging setup for BarberBook.

Production logs are one JSON object per line; development logs are coloured
single lines. Every record emitted while a request is active carries that
request's id, taken from the ``X-Request-ID`` header or generated, and the id
is echoed back on the response.

Modules log with a ``context`` dict for structured fields:

    logger = logging.getLogger(__name__)
    logger.info("Booking created", extra={"context": {"booking_id": 12}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, g, has_request_context, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.engine import Engine

REQUEST_ID_HEADER = "X-Request-ID"
LOG_FILE_NAME = "barberbook.log"
SLOW_QUERY_MS = 200.0

# Paths polled by load balancers and scrapers; logging them is noise.
QUIET_PATH_PREFIXES = ("/health", "/metrics", "/static/")

_sql_timing_installed = False


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` from the active request, or ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = None
        if has_request_context():
            request_id = g.get("request_id")
        record.request_id = request_id or "-"
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured level names plus any ``context`` appended as key=value pairs."""

    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelname, "")
        plain_level = record.levelname
        record.levelname = f"{colour}{plain_level:<7}{self.RESET}"
        try:
            line = super().format(record)
        finally:
            record.levelname = plain_level
        context = getattr(record, "context", None)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _install_sql_timing() -> None:
    """Time every statement; anything slower than SLOW_QUERY_MS is a warning."""
    global _sql_timing_installed
    if _sql_timing_installed:
        return

    sql_logger = logging.getLogger("barberbook.sql")

    @event.listens_for(Engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("barberbook_query_start", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (time.perf_counter() - conn.info["barberbook_query_start"].pop()) * 1000
        level = logging.WARNING if elapsed_ms >= SLOW_QUERY_MS else logging.DEBUG
        sql_logger.log(
            level,
            "SQL %.1fms",
            elapsed_ms,
            extra={"context": {"statement": statement[:300], "duration_ms": round(elapsed_ms, 1)}},
        )

    _sql_timing_installed = True


def _file_handler(level: int) -> Optional[logging.Handler]:
    log_dir = Path.cwd() / "logs"
    try:
        log_dir.mkdir(exist_ok=True)
    except OSError as e:
        logging.getLogger(__name__).warning(
            "Cannot create log directory, file logging disabled",
            extra={"context": {"path": str(log_dir), "error": str(e)}},
        )
        return None
    handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def _is_quiet(path: str) -> bool:
    return path.startswith(QUIET_PATH_PREFIXES)


def _register_request_hooks(app: Flask) -> None:
    access_logger = logging.getLogger("barberbook.access")

    @app.before_request
    def _begin_request():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish_request(response):
        response.headers.setdefault(REQUEST_ID_HEADER, g.get("request_id", ""))
        started = g.get("request_started")
        if started is None or _is_quiet(request.path):
            return response

        context: Dict[str, Any] = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 1),
        }
        if current_user.is_authenticated:
            context["user_id"] = current_user.id
            context["role"] = current_user.role

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        access_logger.log(
            level,
            "%s %s -> %s",
            request.method,
            request.path,
            response.status_code,
            extra={"context": context},
        )
        return response


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = False,
    use_json_format: bool = False,
) -> None:
    """
    Replace the root handlers with BarberBook's and hook request logging.

    Args:
        app: when given, request ids and access logs are wired into it
        log_level: level name or number for the root logger
        enable_sql_echo: time SQL statements through engine events
        log_to_file: also write JSON lines to ``logs/barberbook.log``
        use_json_format: JSON on stdout instead of coloured lines
    """
    level = _resolve_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)

    request_id_filter = RequestIdFilter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(JSONFormatter() if use_json_format else ConsoleFormatter())
    stdout_handler.addFilter(request_id_filter)
    root_logger.addHandler(stdout_handler)

    if log_to_file:
        file_handler = _file_handler(level)
        if file_handler is not None:
            file_handler.addFilter(request_id_filter)
            root_logger.addHandler(file_handler)

    if enable_sql_echo:
        _install_sql_timing()

    if app is not None:
        _register_request_hooks(app)

    for noisy in ("werkzeug", "urllib3", "stripe"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
