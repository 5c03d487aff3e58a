"""Transaction mutations behind the dashboard forms.

Each action resolves the authenticated user, runs the server-side validator
and writes through the given SQLAlchemy session. Business-rule failures come
back as :class:`~finance_dashboard.models.ActionResult` values; database
errors propagate. Committing is left to the caller (``db.client.session_scope``).

Create and update are wrapped in duplicate suppression: the duplicate key is
claimed before the write and released again if the write fails or the
caller's transaction is rolled back instead of committed, so a rapid double
submit of the same form is rejected instead of stored twice.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from db.models.finance import Transaction, User
from sqlalchemy import delete, event, func, select, update
from sqlalchemy.orm import Session

from .auth import get_authenticated_user
from .duplicates import DuplicateRegistry, default_registry
from .logging_setup import get_logger
from .models import ActionResult, IdentityClaims
from .validation import create_duplicate_key, validate_id, validate_transaction_data

logger = get_logger("finance_dashboard.actions")

DUPLICATE_ERROR = "Transação duplicada. Aguarde alguns segundos antes de tentar novamente."
NOT_FOUND_ERROR = "Transação não encontrada"

# HTML checkboxes submit "on" when ticked and nothing otherwise
_CHECKED_VALUES = frozenset({"on", "true"})


def _parse_amount(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return float(raw.strip())
    except ValueError:
        return math.nan


def _release_unless_committed(session: Session, registry: DuplicateRegistry, key: str) -> None:
    """Forget ``key`` if the session's outer transaction ends without a commit."""

    state = {"committed": False, "done": False}

    def _on_commit(_session: Session) -> None:
        state["committed"] = True

    def _on_end(_session: Session, transaction) -> None:
        if transaction.parent is not None or state["done"]:
            return
        state["done"] = True
        if not state["committed"]:
            registry.release(key)
            logger.debug("released duplicate key after rollback")

    event.listen(session, "after_commit", _on_commit)
    event.listen(session, "after_transaction_end", _on_end)


def parse_transaction_form(form: Mapping[str, Any]) -> dict[str, Any]:
    """Translate submitted form fields into validator input.

    Numeric strings become floats (unparseable ones become NaN and are then
    rejected by the validator) and the ``isFixed`` checkbox becomes a bool.
    """

    raw_fixed = form.get("isFixed")
    return {
        "description": form.get("description"),
        "amount": _parse_amount(form.get("amount")),
        "category": form.get("category"),
        "type": form.get("type"),
        "is_fixed": raw_fixed is True or (
            isinstance(raw_fixed, str) and raw_fixed.strip().lower() in _CHECKED_VALUES
        ),
    }


def create_transaction(
    session: Session,
    claims: IdentityClaims | None,
    form: Mapping[str, Any],
    *,
    registry: DuplicateRegistry | None = None,
    now: datetime | None = None,
) -> ActionResult:
    """Validate and insert a new transaction for the authenticated user."""

    user = get_authenticated_user(session, claims)
    result = validate_transaction_data(parse_transaction_form(form))
    if not result.success or result.sanitized_data is None:
        return ActionResult(False, result.error)
    data = result.sanitized_data

    registry = registry if registry is not None else default_registry()
    key = create_duplicate_key(user.id, data.description, data.amount, data.type)
    if not registry.claim(key):
        logger.info("rejected duplicate create for user %s", user.id)
        return ActionResult(False, DUPLICATE_ERROR)

    try:
        row = Transaction(
            user_id=user.id,
            description=data.description,
            amount=data.amount,
            category=data.category,
            type=data.type.value,
            is_fixed=data.is_fixed,
            date=now or datetime.now(UTC),
        )
        session.add(row)
        session.flush()
    except Exception:
        registry.release(key)
        raise

    _release_unless_committed(session, registry, key)
    logger.info("created %s transaction %s for user %s", data.type.value, row.id, user.id)
    return ActionResult(True, transaction_id=row.id)


def update_transaction(
    session: Session,
    claims: IdentityClaims | None,
    form: Mapping[str, Any],
    *,
    registry: DuplicateRegistry | None = None,
    check_duplicates: bool = True,
) -> ActionResult:
    """Overwrite every editable field of one of the user's transactions.

    Only rows owned by the authenticated user are touched. With
    ``check_duplicates`` the same key as :func:`create_transaction` is
    claimed, so saving an edit identical to a submission from the last couple
    of seconds is rejected.
    """

    user = get_authenticated_user(session, claims)
    id_result = validate_id(form.get("id"))
    if not id_result.success or id_result.sanitized_data is None:
        return ActionResult(False, id_result.error)
    tx_id = id_result.sanitized_data

    result = validate_transaction_data(parse_transaction_form(form))
    if not result.success or result.sanitized_data is None:
        return ActionResult(False, result.error)
    data = result.sanitized_data

    key: str | None = None
    if check_duplicates:
        registry = registry if registry is not None else default_registry()
        key = create_duplicate_key(user.id, data.description, data.amount, data.type)
        if not registry.claim(key):
            logger.info("rejected duplicate update of %s for user %s", tx_id, user.id)
            return ActionResult(False, DUPLICATE_ERROR)

    try:
        res = session.execute(
            update(Transaction)
            .where(Transaction.id == tx_id, Transaction.user_id == user.id)
            .values(
                description=data.description,
                amount=data.amount,
                category=data.category,
                type=data.type.value,
                is_fixed=data.is_fixed,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
    except Exception:
        if key is not None and registry is not None:
            registry.release(key)
        raise

    if res.rowcount == 0:
        if key is not None and registry is not None:
            registry.release(key)
        return ActionResult(False, NOT_FOUND_ERROR)

    if key is not None and registry is not None:
        _release_unless_committed(session, registry, key)
    logger.info("updated transaction %s for user %s", tx_id, user.id)
    return ActionResult(True, transaction_id=tx_id)


def delete_transaction(
    session: Session,
    claims: IdentityClaims | None,
    transaction_id: Any,
) -> ActionResult:
    """Delete one of the user's transactions; other users' rows are never matched."""

    user = get_authenticated_user(session, claims)
    id_result = validate_id(transaction_id)
    if not id_result.success or id_result.sanitized_data is None:
        return ActionResult(False, id_result.error)
    tx_id = id_result.sanitized_data

    res = session.execute(
        delete(Transaction).where(Transaction.id == tx_id, Transaction.user_id == user.id)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        return ActionResult(False, NOT_FOUND_ERROR)

    logger.info("deleted transaction %s for user %s", tx_id, user.id)
    return ActionResult(True, transaction_id=tx_id)


def list_transactions(
    session: Session, user: User, *, limit: int | None = None
) -> list[Transaction]:
    """Return the user's transactions, newest first."""

    stmt = (
        select(Transaction)
        .where(Transaction.user_id == user.id)
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.execute(stmt).scalars().all())


__all__ = [
    "DUPLICATE_ERROR",
    "NOT_FOUND_ERROR",
    "parse_transaction_form",
    "create_transaction",
    "update_transaction",
    "delete_transaction",
    "list_transactions",
]
