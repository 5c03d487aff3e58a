"""DB helpers for tests: bootstrap a temporary SQLite DB from the ORM models."""

from __future__ import annotations

from pathlib import Path

from db.client import create_schema, reset_engine, session_scope
from db.models.finance import Transaction, User
from sqlalchemy import func, select


def bootstrap_sqlite_db(db_file: Path) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    A file-backed database lets every SQLAlchemy connection see the same state
    (in-memory databases are per-connection). The shared engine is reset first
    so each test binds to its own file.
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    reset_engine()
    create_schema(database_url=url)
    return url


def count_transactions(database_url: str, *, provider_user_id: str | None = None) -> int:
    """Count committed transactions, optionally for one provider user."""

    with session_scope(database_url=database_url) as session:
        stmt = select(func.count()).select_from(Transaction)
        if provider_user_id is not None:
            stmt = stmt.join(User, User.id == Transaction.user_id).where(
                User.provider_user_id == provider_user_id
            )
        return session.execute(stmt).scalar_one()


def load_transaction(database_url: str, tx_id: str) -> Transaction | None:
    with session_scope(database_url=database_url) as session:
        return session.get(Transaction, tx_id)
