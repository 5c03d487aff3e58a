"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database (via the ``database_url``
fixture) and a clean environment: the ``FINANCE_DASHBOARD_*`` variables and
``DATABASE_URL`` are removed and the working directory is moved to the test's
temporary directory so no developer ``.env`` is picked up by the CLI.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import get_session, reset_engine
from sqlalchemy.orm import Session

from finance_dashboard import duplicates
from finance_dashboard.duplicates import DuplicateRegistry
from finance_dashboard.models import IdentityClaims
from tests.helpers.clock import FakeClock
from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("FINANCE_DASHBOARD_") or name == "DATABASE_URL":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    # Fresh process-wide registry per test
    monkeypatch.setattr(duplicates, "_DEFAULT_REGISTRY", None)


@pytest.fixture
def database_url(tmp_path: Path) -> Iterator[str]:
    url = bootstrap_sqlite_db(tmp_path / "db" / "dashboard.sqlite")
    yield url
    reset_engine()


@pytest.fixture
def session(database_url: str) -> Iterator[Session]:
    s = get_session(database_url=database_url)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> DuplicateRegistry:
    return DuplicateRegistry(clock=clock)


@pytest.fixture
def claims() -> IdentityClaims:
    return IdentityClaims(
        provider_user_id="user_2abc",
        email="ana@example.com",
        first_name="Ana",
        last_name="Souza",
    )
