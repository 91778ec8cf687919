"""
Database wiring: engine construction, the declarative base and the
per-request session dependency.

There is no module-level engine. ``create_app()`` builds one and keeps
the session factory on ``app.state``; request handlers receive a fresh
``Session`` through :func:`get_session`.
"""

from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def make_engine(url: str) -> Engine:
    """Create an engine for ``url``.

    SQLite connections get foreign keys switched on and a ``lower()``
    that folds non-ASCII letters too. An in-memory SQLite database is
    pinned to a single shared connection so that every session (and
    every worker thread) sees the same data.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # Replaces the ASCII-only built-in; the authors name index depends on it.
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401  (registers the mappers)

    Base.metadata.create_all(engine)
    logger.info("Database schema initialized")


def get_session(request: Request) -> Iterator[Session]:
    factory = request.app.state.session_factory
    session = factory()
    try:
        yield session
    finally:
        session.close()
