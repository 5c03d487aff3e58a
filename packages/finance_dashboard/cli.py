# ruff: noqa: I001
"""Command-line front end for the finance dashboard.

The CLI plays the role of the web forms: every command builds the same field
mapping a form submission would and hands it to ``finance_dashboard.actions``
or ``finance_dashboard.budget_settings``. Identity claims, normally supplied
by the identity provider, come from ``--user-id/--email/--name`` or the
``FINANCE_DASHBOARD_USER_*`` environment variables. A local ``.env`` is
loaded with ``python-dotenv`` before any command runs.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .constants import TRANSACTION_CATEGORIES
from .logging_setup import configure_logging, get_logger
from .models import ActionResult, IdentityClaims

logger = get_logger("finance_dashboard.cli")

app = typer.Typer(
    name="finance-dashboard",
    help="Personal finance dashboard: transactions, budget goals and monthly summary.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


@dataclass(slots=True)
class CliState:
    database_url: str | None
    claims: IdentityClaims | None


def _claims_from(
    user_id: str | None, email: str | None, name: str | None
) -> IdentityClaims | None:
    user_id = user_id or os.getenv("FINANCE_DASHBOARD_USER_ID")
    if not user_id or not user_id.strip():
        return None
    email = email or os.getenv("FINANCE_DASHBOARD_USER_EMAIL")
    name = name or os.getenv("FINANCE_DASHBOARD_USER_NAME") or ""
    first, _, last = name.strip().partition(" ")
    return IdentityClaims(
        provider_user_id=user_id,
        email=email,
        first_name=first or None,
        last_name=last or None,
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"Error: {message}", markup=False, highlight=False, soft_wrap=True)
    return typer.Exit(1)


def _run[T](state: CliState, fn: Callable[[Session], T]) -> T:
    """Run ``fn`` inside a committed session, turning failures into exit code 1."""

    from db.client import session_scope

    from .auth import AuthenticationError

    try:
        with session_scope(database_url=state.database_url) as session:
            return fn(session)
    except AuthenticationError as e:
        raise _fail(f"{e} (pass --user-id or set FINANCE_DASHBOARD_USER_ID)") from e
    except RuntimeError as e:
        raise _fail(str(e)) from e
    except SQLAlchemyError as e:
        logger.debug("database operation failed", exc_info=True)
        raise _fail(f"database operation failed: {e}") from e


def _report(result: ActionResult, success_message: str) -> None:
    if not result.success:
        raise _fail(result.error or "operation failed")
    typer.echo(success_message)


def _transaction_form(
    description: str,
    amount: str,
    category: str,
    tx_type: str,
    fixed: bool,
) -> dict[str, Any]:
    form: dict[str, Any] = {
        "description": description,
        "amount": amount,
        "category": category,
        "type": tx_type.upper(),
    }
    if fixed:
        form["isFixed"] = "on"
    return form


DescriptionOpt = Annotated[str, typer.Option("--description", "-d", help="What the money was for.")]
AmountOpt = Annotated[str, typer.Option("--amount", "-a", help="Positive amount, e.g. 19.90.")]
CategoryOpt = Annotated[str, typer.Option("--category", "-c", help="See `categories`.")]
TypeOpt = Annotated[str, typer.Option("--type", "-t", help="INCOME or EXPENSE.")]
FixedOpt = Annotated[
    bool, typer.Option("--fixed/--variable", help="Recurring monthly expense (expenses only).")
]


@app.command("init-db")
def init_db_cmd(ctx: typer.Context) -> None:
    """Create the tables from the ORM metadata (use Alembic for managed databases)."""

    from db.client import create_schema

    state: CliState = ctx.obj
    try:
        create_schema(database_url=state.database_url)
    except RuntimeError as e:
        raise _fail(str(e)) from e
    except SQLAlchemyError as e:
        raise _fail(f"could not create the schema: {e}") from e
    typer.echo("Database initialized.")


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    description: DescriptionOpt,
    amount: AmountOpt,
    category: CategoryOpt,
    tx_type: TypeOpt = "EXPENSE",
    fixed: FixedOpt = False,
) -> None:
    """Record a new income or expense."""

    from .actions import create_transaction

    state: CliState = ctx.obj
    form = _transaction_form(description, amount, category, tx_type, fixed)
    result = _run(state, lambda s: create_transaction(s, state.claims, form))
    _report(result, f"Created transaction {result.transaction_id}")


@app.command("edit")
def edit_cmd(
    ctx: typer.Context,
    transaction_id: Annotated[str, typer.Argument(help="Transaction id (see `list`).")],
    description: DescriptionOpt,
    amount: AmountOpt,
    category: CategoryOpt,
    tx_type: TypeOpt = "EXPENSE",
    fixed: FixedOpt = False,
) -> None:
    """Replace every field of an existing transaction."""

    from .actions import update_transaction

    state: CliState = ctx.obj
    form = _transaction_form(description, amount, category, tx_type, fixed)
    form["id"] = transaction_id
    result = _run(state, lambda s: update_transaction(s, state.claims, form))
    _report(result, f"Updated transaction {result.transaction_id}")


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    transaction_id: Annotated[str, typer.Argument(help="Transaction id (see `list`).")],
) -> None:
    """Delete a transaction."""

    from .actions import delete_transaction

    state: CliState = ctx.obj
    result = _run(state, lambda s: delete_transaction(s, state.claims, transaction_id))
    _report(result, f"Deleted transaction {result.transaction_id}")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(min=1, help="Show only the newest N.")] = None,
) -> None:
    """List transactions, newest first."""

    from .actions import list_transactions
    from .auth import find_user
    from .summary import format_currency, to_view

    state: CliState = ctx.obj

    def _load(session: Session):
        user = find_user(session, state.claims)
        if user is None:
            return []
        return [to_view(r) for r in list_transactions(session, user, limit=limit)]

    rows = _run(state, _load)
    if not rows:
        typer.echo("No transactions yet.")
        return

    table = Table("ID", "Date", "Description", "Category", "Type", "Amount")
    for t in rows:
        kind = t.type.value + (" (fixed)" if t.is_fixed else "")
        table.add_row(
            t.id, t.date.strftime("%d/%m/%Y"), t.description, t.category, kind,
            format_currency(t.amount),
        )
    console.print(table)


@app.command("summary")
def summary_cmd(
    ctx: typer.Context,
    today: Annotated[
        str | None, typer.Option(help="Reference date YYYY-MM-DD (defaults to today).")
    ] = None,
) -> None:
    """Show the dashboard figures."""

    from .summary import build_dashboard, format_currency

    state: CliState = ctx.obj
    try:
        ref = date.fromisoformat(today) if today else None
    except ValueError as e:
        raise _fail(f"invalid --today value {today!r}: expected YYYY-MM-DD") from e

    summary = _run(state, lambda s: build_dashboard(s, state.claims, today=ref))
    if summary is None:
        typer.echo("Welcome! Record your first transaction to activate your account.")
        return

    table = Table("Metric", "Value", show_header=False)
    table.add_row("Can spend today", format_currency(summary.daily_cap))
    table.add_row("Variable goal left", format_currency(summary.remaining_variable_budget))
    table.add_row(
        f"Variable spent ({format_currency(summary.variable_goal)} goal)",
        f"{format_currency(summary.variable_expenses)} ({summary.variable_progress:.0f}%)",
    )
    table.add_row("Fixed expenses", format_currency(summary.fixed_expenses))
    table.add_row("Total income", format_currency(summary.total_income))
    table.add_row("Current balance", format_currency(summary.current_balance))
    table.add_row("Projected month-end", format_currency(summary.projected_balance))
    console.print(table)
    if summary.over_budget:
        err_console.print("Variable goal exceeded!", markup=False)

    if summary.chart_data:
        chart = Table("Day", "Expenses", title="Last days with expenses")
        for point in summary.chart_data:
            chart.add_row(point.date, format_currency(point.amount))
        console.print(chart)


@app.command("settings")
def settings_cmd(
    ctx: typer.Context,
    budget: Annotated[str, typer.Option("--budget", help="Monthly variable-spending goal.")],
    income: Annotated[str, typer.Option("--income", help="Expected monthly income.")],
) -> None:
    """Save the monthly budget goal and expected income."""

    from .budget_settings import update_settings

    state: CliState = ctx.obj
    form = {"monthlyBudget": budget, "monthlyIncome": income}
    result = _run(state, lambda s: update_settings(s, state.claims, form))
    _report(result, "Settings saved.")


@app.command("categories")
def categories_cmd() -> None:
    """Print the accepted categories per group."""

    for group, names in TRANSACTION_CATEGORIES.items():
        typer.echo(f"{group}:")
        for n in names:
            typer.echo(f"  {n}")


@app.callback()
def _root(
    ctx: typer.Context,
    *,
    database_url: str | None = typer.Option(
        None, help="Override DATABASE_URL (falls back to env var)."
    ),
    user_id: str | None = typer.Option(
        None, "--user-id", help="Identity provider user id (env FINANCE_DASHBOARD_USER_ID)."
    ),
    email: str | None = typer.Option(None, help="Email for a first-time user."),
    name: str | None = typer.Option(None, help="Full name for a first-time user."),
    log_level: str | None = typer.Option(
        None, help="Logging level (env FINANCE_DASHBOARD_LOG_LEVEL, default INFO)."
    ),
) -> None:
    """Root command: load ``.env``, configure logging and resolve the identity."""

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level, force=True)

    ctx.obj = CliState(
        database_url=database_url,
        claims=_claims_from(user_id, email, name),
    )


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
