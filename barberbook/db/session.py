"""
Engine and session factory.

The engine is built on first use from DATABASE_URL and rebuilt if that
variable changes, so the test suite can point the app at an in-memory
database before anything connects.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from barberbook.core.config import get_database_url

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_engine_url: Optional[str] = None
_session_factory: Optional[sessionmaker] = None


def _engine_options(url: URL) -> Dict[str, Any]:
    if url.get_backend_name() == "postgresql":
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "pool_recycle": 1800,
            "connect_args": {"application_name": "barberbook", "connect_timeout": 10},
        }
    if url.get_backend_name() == "sqlite":
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # Every session must see the same in-memory database.
            options["poolclass"] = StaticPool
        return options
    return {}


def get_engine() -> Engine:
    global _engine, _engine_url, _session_factory
    database_url = get_database_url()
    if _engine is not None and _engine_url == database_url:
        return _engine

    if _engine is not None:
        _engine.dispose()
    url = make_url(database_url)
    _engine = create_engine(url, **_engine_options(url))
    _engine_url = database_url
    _session_factory = None
    logger.info(
        "Database engine created",
        extra={"context": {"dialect": _engine.dialect.name, "database": url.database}},
    )
    return _engine


def SessionLocal() -> Session:
    """Open a new session on the current engine; close it when done."""
    global _session_factory
    engine = get_engine()
    if _session_factory is None:
        _session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return _session_factory()


def create_tables() -> None:
    from barberbook.db import base  # noqa: F401  registers the models

    Base.metadata.create_all(bind=get_engine())


def drop_tables() -> None:
    from barberbook.db import base  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
