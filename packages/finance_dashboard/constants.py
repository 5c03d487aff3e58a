"""Static category vocabulary and the transaction type enum.

Categories are plain configuration data: three named tuples (income, fixed
expense, variable expense) plus a mapping from each transaction type to the
categories it accepts. Membership checks are the only operation performed on
them.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class TransactionType(StrEnum):
    """Kind of money movement; values are the exact wire strings."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


# Income sources: salary, freelance work, side income, dividends, other.
INCOME_CATEGORIES: tuple[str, ...] = (
    "Salário",
    "Freelancer",
    "Renda Extra",
    "Dividendos",
    "Outros",
)

# Recurring monthly expenses.
EXPENSE_FIXED_CATEGORIES: tuple[str, ...] = (
    "Aluguel/Condomínio",
    "Internet/Luz/Água",
    "Parcela Dívida",
    "Assinaturas",
    "Seguro",
)

# Discretionary expenses.
EXPENSE_VARIABLE_CATEGORIES: tuple[str, ...] = (
    "Alimentação",
    "Transporte",
    "Lazer",
    "Compras",
    "Saúde/Farmácia",
)

TRANSACTION_CATEGORIES: Mapping[str, tuple[str, ...]] = {
    "INCOME": INCOME_CATEGORIES,
    "EXPENSE_FIXED": EXPENSE_FIXED_CATEGORIES,
    "EXPENSE_VARIABLE": EXPENSE_VARIABLE_CATEGORIES,
}

ALL_CATEGORIES: frozenset[str] = frozenset(
    INCOME_CATEGORIES + EXPENSE_FIXED_CATEGORIES + EXPENSE_VARIABLE_CATEGORIES
)

CATEGORIES_BY_TYPE: Mapping[TransactionType, frozenset[str]] = {
    TransactionType.INCOME: frozenset(INCOME_CATEGORIES),
    TransactionType.EXPENSE: frozenset(EXPENSE_FIXED_CATEGORIES + EXPENSE_VARIABLE_CATEGORIES),
}


__all__ = [
    "TransactionType",
    "INCOME_CATEGORIES",
    "EXPENSE_FIXED_CATEGORIES",
    "EXPENSE_VARIABLE_CATEGORIES",
    "TRANSACTION_CATEGORIES",
    "ALL_CATEGORIES",
    "CATEGORIES_BY_TYPE",
]
