"""Dashboard arithmetic.

:func:`compute_summary` is pure: it takes the user's transactions (newest
first), the monthly variable-spending goal and today's date, and produces the
figures behind the dashboard cards:

- balance = income - (fixed + variable expenses);
- daily cap = what is left of the variable goal spread over the remaining
  days of the month (the whole remainder on the last day);
- progress = share of the goal already spent, capped at 100%;
- projection = income - fixed expenses - goal, or 0 before any income exists.

The chart series sums expenses per day for the 7 most recent days that have
expenses, in chronological order.
"""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from db.models.finance import Transaction
from sqlalchemy.orm import Session

from .actions import list_transactions
from .auth import find_user
from .budget_settings import get_settings
from .constants import TransactionType
from .models import (
    CENT,
    ChartPoint,
    DashboardSummary,
    IdentityClaims,
    TransactionView,
    round_cents,
)

RECENT_LIMIT = 5
CHART_DAYS = 7

_ZERO = Decimal("0.00")


def to_view(row: Transaction) -> TransactionView:
    return TransactionView(
        id=row.id,
        description=row.description,
        amount=round_cents(row.amount),
        category=row.category,
        type=TransactionType(row.type),
        is_fixed=bool(row.is_fixed),
        date=row.date,
    )


def _sum(items: Sequence[TransactionView]) -> Decimal:
    return sum((t.amount for t in items), _ZERO)


def _chart_series(expenses: Sequence[TransactionView]) -> list[ChartPoint]:
    by_day: dict[str, Decimal] = {}
    for t in expenses:
        label = t.date.strftime("%d/%m")
        by_day[label] = by_day.get(label, _ZERO) + t.amount
    newest = list(by_day.items())[:CHART_DAYS]
    return [ChartPoint(label, amount) for label, amount in reversed(newest)]


def compute_summary(
    transactions: Sequence[TransactionView],
    *,
    monthly_budget: Decimal | None,
    today: date,
) -> DashboardSummary:
    """Compute dashboard figures from ``transactions`` ordered newest first."""

    income = [t for t in transactions if t.type is TransactionType.INCOME]
    expenses = [t for t in transactions if t.type is TransactionType.EXPENSE]

    total_income = _sum(income)
    fixed_expenses = _sum([t for t in expenses if t.is_fixed])
    variable_expenses = _sum([t for t in expenses if not t.is_fixed])
    current_balance = total_income - (fixed_expenses + variable_expenses)

    goal = Decimal(monthly_budget) if monthly_budget else _ZERO

    days_in_month = calendar.monthrange(today.year, today.month)[1]
    days_remaining = days_in_month - today.day
    remaining = goal - variable_expenses
    daily_cap = remaining / days_remaining if days_remaining > 0 else remaining

    progress = min(float(variable_expenses / goal * 100), 100.0) if goal > 0 else 0.0
    projected = total_income - fixed_expenses - goal if total_income > 0 else _ZERO

    return DashboardSummary(
        total_income=total_income,
        fixed_expenses=fixed_expenses,
        variable_expenses=variable_expenses,
        current_balance=current_balance,
        variable_goal=goal,
        days_remaining=days_remaining,
        remaining_variable_budget=remaining,
        daily_cap=daily_cap.quantize(CENT, rounding=ROUND_HALF_UP),
        variable_progress=progress,
        projected_balance=projected,
        chart_data=_chart_series(expenses),
        recent=list(transactions[:RECENT_LIMIT]),
    )


def build_dashboard(
    session: Session,
    claims: IdentityClaims | None,
    *,
    today: date | None = None,
) -> DashboardSummary | None:
    """Load the user's data and summarize it.

    Returns ``None`` for a provider user that has no local record yet (the
    account is created with the first transaction).
    """

    user = find_user(session, claims)
    if user is None:
        return None
    rows = list_transactions(session, user)
    settings = get_settings(session, user)
    return compute_summary(
        [to_view(r) for r in rows],
        monthly_budget=settings.monthly_budget if settings is not None else None,
        today=today or date.today(),
    )


def format_currency(value: Decimal | float | int) -> str:
    """Format ``value`` as Brazilian reais, e.g. ``R$ 1.234,56``."""

    d = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if d < 0 else ""
    units, _, cents = f"{abs(d):.2f}".partition(".")
    grouped = f"{int(units):,}".replace(",", ".")
    return f"{sign}R$ {grouped},{cents}"


__all__ = [
    "RECENT_LIMIT",
    "CHART_DAYS",
    "to_view",
    "compute_summary",
    "build_dashboard",
    "format_currency",
]
