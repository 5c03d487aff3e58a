"""Bridge between the external identity provider and the ``users`` table.

The provider authenticates the request and hands over
:class:`~finance_dashboard.models.IdentityClaims`. This module maps those
claims to a local :class:`db.models.finance.User`, creating the row the first
time a given provider user shows up.
"""

from __future__ import annotations

from db.models.finance import User
from sqlalchemy import select
from sqlalchemy.orm import Session

from .logging_setup import get_logger
from .models import IdentityClaims

logger = get_logger("finance_dashboard.auth")


class AuthenticationError(RuntimeError):
    """Raised when an operation requires an identity and none was supplied."""

    def __init__(self, message: str = "Usuário não autenticado") -> None:
        super().__init__(message)


def find_user(session: Session, claims: IdentityClaims | None) -> User | None:
    """Return the local user for ``claims`` without creating one."""

    if claims is None:
        return None
    return session.execute(
        select(User).where(User.provider_user_id == claims.provider_user_id)
    ).scalar_one_or_none()


def get_authenticated_user(session: Session, claims: IdentityClaims | None) -> User:
    """Return the local user for ``claims``, creating it on first use.

    Raises :class:`AuthenticationError` when ``claims`` is ``None``. The caller
    owns the transaction; a newly created user is flushed, not committed.
    """

    if claims is None:
        raise AuthenticationError()

    user = find_user(session, claims)
    if user is None:
        user = User(
            provider_user_id=claims.provider_user_id,
            email=claims.email,
            name=claims.display_name,
        )
        session.add(user)
        session.flush()
        logger.info("created local user %s for provider id %s", user.id, claims.provider_user_id)
    return user


__all__ = ["AuthenticationError", "find_user", "get_authenticated_user"]
