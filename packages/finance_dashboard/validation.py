"""Server-side validation for transaction submissions.

Every check here is authoritative: the front end may pre-validate, but
anything that reaches persistence goes through :func:`validate_transaction_data`
first. Failures are returned as :class:`ValidationResult` values carrying a
user-facing message (pt-BR); nothing in this module raises for bad input.

Check order (first failure wins):

1. description: present, text, non-empty after trimming, at most 200 chars;
2. amount: a real number (not ``bool``/``str``/NaN) within ``[0.01, 1e9]``;
3. type: exactly ``"INCOME"`` or ``"EXPENSE"``;
4. category: present, text, known, and compatible with the type;
5. is_fixed: coerced to ``bool``; always ``False`` for income.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from .constants import ALL_CATEGORIES, CATEGORIES_BY_TYPE, TransactionType
from .logging_setup import get_logger
from .models import MAX_AMOUNT, TransactionInput, ValidationResult, round_cents

logger = get_logger("finance_dashboard.validation")

DESCRIPTION_MIN_LENGTH = 1
DESCRIPTION_MAX_LENGTH = 200
AMOUNT_MIN = Decimal("0.01")
AMOUNT_MAX = MAX_AMOUNT


def _reject[T](message: str) -> ValidationResult[T]:
    logger.debug("transaction rejected: %s", message)
    return ValidationResult.fail(message)


def _as_number(raw: Any) -> Decimal | None:
    """Return ``raw`` as a Decimal when it is a real, non-NaN number."""

    if isinstance(raw, bool) or not isinstance(raw, int | float | Decimal):
        return None
    d = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    if d.is_nan():
        return None
    return d


def _as_type(raw: Any) -> TransactionType | None:
    if not isinstance(raw, str):
        return None
    try:
        return TransactionType(raw)
    except ValueError:
        return None


def validate_transaction_data(data: Mapping[str, Any]) -> ValidationResult[TransactionInput]:
    """Validate and sanitize raw transaction fields.

    ``data`` is a mapping with ``description``, ``amount``, ``category``,
    ``type`` and optionally ``is_fixed``. Missing keys are treated like
    missing form fields.
    """

    raw_description = data.get("description")
    if not raw_description or not isinstance(raw_description, str):
        return _reject("Descrição é obrigatória e deve ser texto")

    description = raw_description.strip()
    if len(description) < DESCRIPTION_MIN_LENGTH:
        return _reject("Descrição não pode estar vazia")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        return _reject(f"Descrição muito longa (máximo {DESCRIPTION_MAX_LENGTH} caracteres)")

    raw_amount = _as_number(data.get("amount"))
    if raw_amount is None:
        return _reject("Valor inválido - deve ser um número")
    if raw_amount < AMOUNT_MIN:
        return _reject("Valor deve ser maior que zero")
    if raw_amount > AMOUNT_MAX:
        return _reject("Valor muito grande (máximo 1 bilhão)")
    amount = round_cents(raw_amount)

    tx_type = _as_type(data.get("type"))
    if tx_type is None:
        return _reject("Tipo de transação inválido (deve ser INCOME ou EXPENSE)")

    raw_category = data.get("category")
    if not raw_category or not isinstance(raw_category, str):
        return _reject("Categoria é obrigatória")

    category = raw_category.strip()
    if category not in ALL_CATEGORIES:
        return _reject(f'Categoria inválida: "{category}"')
    if category not in CATEGORIES_BY_TYPE[tx_type]:
        if tx_type is TransactionType.INCOME:
            return _reject("Categoria não é válida para receitas (INCOME)")
        return _reject("Categoria não é válida para despesas (EXPENSE)")

    # Fixed/variable only distinguishes expenses
    is_fixed = bool(data.get("is_fixed")) and tx_type is TransactionType.EXPENSE

    return ValidationResult.ok(
        TransactionInput(
            description=description,
            amount=amount,
            category=category,
            type=tx_type,
            is_fixed=is_fixed,
        )
    )


def validate_id(raw_id: Any) -> ValidationResult[str]:
    """Accept a non-empty string identifier and return it trimmed."""

    if not raw_id or not isinstance(raw_id, str) or not raw_id.strip():
        return _reject("ID inválido ou não fornecido")
    return ValidationResult.ok(raw_id.strip())


def create_duplicate_key(
    user_id: str,
    description: str,
    amount: float | Decimal,
    type: TransactionType | str,
) -> str:
    """Build the lookup key used to spot rapid resubmissions.

    Same user, same type, same description ignoring case and same amount to
    the cent produce the same key. ``type`` is used as given, so an unknown
    type still yields a key instead of raising.
    """

    return f"{user_id}:{str(type)}:{description.lower()}:{amount:.2f}"


__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "AMOUNT_MIN",
    "AMOUNT_MAX",
    "validate_transaction_data",
    "validate_id",
    "create_duplicate_key",
]
