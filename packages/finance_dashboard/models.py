"""Data models and result types for ``finance_dashboard``.

Plain frozen dataclasses carry validated values between the validator, the
actions and the dashboard. Pydantic models are used at the two boundaries
where raw outside data is parsed into typed fields: identity claims handed
over by the identity provider and the budget-settings form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator

from .constants import TransactionType

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000")


def round_cents(value: float | int | Decimal) -> Decimal:
    """Round to two decimal places, halves away from zero.

    Floats go through ``str`` first so ``19.999`` becomes ``20.00`` and
    ``0.125`` becomes ``0.13`` instead of inheriting binary representation
    error.
    """

    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Validator outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionInput:
    """Sanitized transaction fields, safe to persist."""

    description: str
    amount: Decimal
    category: str
    type: TransactionType
    is_fixed: bool = False


@dataclass(frozen=True, slots=True)
class ValidationResult[T]:
    """Tagged outcome: ``success`` with ``sanitized_data`` or an ``error``."""

    success: bool
    error: str | None = None
    sanitized_data: T | None = None

    @classmethod
    def ok(cls, data: T) -> ValidationResult[T]:
        return cls(True, None, data)

    @classmethod
    def fail(cls, error: str) -> ValidationResult[T]:
        return cls(False, error, None)


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Response shape handed back to the presentation layer."""

    success: bool
    error: str | None = None
    transaction_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            out["error"] = self.error
        return out


# ---------------------------------------------------------------------------
# Boundary models
# ---------------------------------------------------------------------------


class IdentityClaims(BaseModel):
    """Identity asserted by the external provider for the current request."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    provider_user_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("provider_user_id")
    @classmethod
    def _id_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("provider_user_id must be non-empty")
        return v

    @property
    def display_name(self) -> str | None:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None


class SettingsInput(BaseModel):
    """Monthly budget goal and expected income, both in BRL."""

    model_config = ConfigDict(frozen=True)

    monthly_budget: Decimal
    monthly_income: Decimal

    @field_validator("monthly_budget", "monthly_income", mode="before")
    @classmethod
    def _parse_money(cls, v: Any) -> Decimal:
        if isinstance(v, bool) or v is None:
            raise ValueError("must be a number")
        if isinstance(v, str):
            v = v.strip().replace(",", ".")
            if not v:
                raise ValueError("must be a number")
        try:
            d = Decimal(str(v))
        except ArithmeticError as exc:
            raise ValueError("must be a number") from exc
        if not d.is_finite():
            raise ValueError("must be a finite number")
        if d < 0 or d > MAX_AMOUNT:
            raise ValueError("must be between 0 and 1 billion")
        return d.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Dashboard read model
# ---------------------------------------------------------------------------


class ChartPoint(NamedTuple):
    """Total expenses for one calendar day, labelled ``dd/mm``."""

    date: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class TransactionView:
    id: str
    description: str
    amount: Decimal
    category: str
    type: TransactionType
    is_fixed: bool
    date: datetime


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    """Figures shown on the dashboard cards, chart and recent list."""

    total_income: Decimal
    fixed_expenses: Decimal
    variable_expenses: Decimal
    current_balance: Decimal
    variable_goal: Decimal
    days_remaining: int
    remaining_variable_budget: Decimal
    daily_cap: Decimal
    variable_progress: float
    projected_balance: Decimal
    chart_data: list[ChartPoint] = field(default_factory=list)
    recent: list[TransactionView] = field(default_factory=list)

    @property
    def over_budget(self) -> bool:
        return self.daily_cap < 0

    @property
    def progress_warning(self) -> bool:
        # Progress bar turns red above 90%
        return self.variable_progress > 90


__all__ = [
    "CENT",
    "MAX_AMOUNT",
    "round_cents",
    "TransactionInput",
    "ValidationResult",
    "ActionResult",
    "IdentityClaims",
    "SettingsInput",
    "ChartPoint",
    "TransactionView",
    "DashboardSummary",
]
