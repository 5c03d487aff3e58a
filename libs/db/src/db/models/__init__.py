"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the dashboard models used by ``finance_dashboard``.
"""

from .finance import Base, Transaction, User, UserSettings

__all__ = [
    "Base",
    "User",
    "Transaction",
    "UserSettings",
]
