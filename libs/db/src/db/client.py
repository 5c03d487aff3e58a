"""Engine and session helpers shared by the dashboard and its tools.

One engine is created per process, bound to ``DATABASE_URL`` (or an explicit
``database_url``). SQLite connections get ``PRAGMA foreign_keys = ON`` so
deleting a user cascades to its transactions and settings on every backend.

Usage
-----
from db.client import session_scope

with session_scope() as s:
    s.add(...)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:  # pragma: no cover - driver hook
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process engine, creating it on first use.

    Asking for a different URL than the one the engine was created with is an
    error until :func:`reset_engine` is called.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is not None:
        if url != _DB_URL:
            raise RuntimeError(
                "get_engine() already initialized with a different DATABASE_URL; "
                "call reset_engine() first"
            )
        return _ENGINE

    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    _ENGINE = engine
    _DB_URL = url
    return engine


def reset_engine() -> None:
    """Dispose the process engine so the next call can bind to another URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


def create_schema(*, database_url: str | None = None) -> Engine:
    """Create any missing tables from the ORM metadata.

    Meant for local SQLite files and tests; managed databases are migrated
    with Alembic (``libs/db/alembic``).
    """

    from .models.finance import Base

    engine = get_engine(database_url=database_url)
    Base.metadata.create_all(bind=engine)
    return engine


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "get_engine",
    "reset_engine",
    "create_schema",
    "get_session",
    "session_scope",
]
