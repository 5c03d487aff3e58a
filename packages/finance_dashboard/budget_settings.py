"""Per-user budget settings: monthly variable-spending goal and expected income.

The dashboard uses ``monthly_budget`` for the daily spending cap and the
progress bar, and subtracts it from income for the month-end projection.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from db.models.finance import User, UserSettings
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth import get_authenticated_user
from .logging_setup import get_logger
from .models import ActionResult, IdentityClaims, SettingsInput

logger = get_logger("finance_dashboard.budget_settings")

_FIELD_ERRORS = {
    "monthly_budget": "Meta mensal inválida",
    "monthly_income": "Renda mensal inválida",
}


def parse_settings_form(form: Mapping[str, Any]) -> SettingsInput:
    """Build :class:`SettingsInput` from ``monthlyBudget``/``monthlyIncome`` fields.

    Raises ``pydantic.ValidationError`` on malformed values.
    """

    return SettingsInput(
        monthly_budget=form.get("monthlyBudget"),
        monthly_income=form.get("monthlyIncome"),
    )


def get_settings(session: Session, user: User) -> UserSettings | None:
    return session.execute(
        select(UserSettings).where(UserSettings.user_id == user.id)
    ).scalar_one_or_none()


def update_settings(
    session: Session,
    claims: IdentityClaims | None,
    form: Mapping[str, Any],
) -> ActionResult:
    """Create or update the authenticated user's settings row."""

    user = get_authenticated_user(session, claims)
    try:
        values = parse_settings_form(form)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = str(first["loc"][0]) if first.get("loc") else ""
        return ActionResult(False, _FIELD_ERRORS.get(field, "Configurações inválidas"))

    row = get_settings(session, user)
    if row is None:
        row = UserSettings(
            user_id=user.id,
            monthly_budget=values.monthly_budget,
            monthly_income=values.monthly_income,
        )
        session.add(row)
    else:
        row.monthly_budget = values.monthly_budget
        row.monthly_income = values.monthly_income
        row.updated_at = datetime.now(UTC)
    session.flush()

    logger.info(
        "saved settings for user %s (budget=%s income=%s)",
        user.id,
        values.monthly_budget,
        values.monthly_income,
    )
    return ActionResult(True)


__all__ = ["parse_settings_form", "get_settings", "update_settings"]
