"""Public interface for the ``finance_dashboard`` package.

Re-exports the validator, the duplicate registry, the transaction/settings
actions and the dashboard summary so hosts can import from one place. Database
models live in the separate ``db`` library.
"""

from .actions import (
    create_transaction,
    delete_transaction,
    list_transactions,
    parse_transaction_form,
    update_transaction,
)
from .auth import AuthenticationError, find_user, get_authenticated_user
from .budget_settings import get_settings, update_settings
from .constants import (
    ALL_CATEGORIES,
    CATEGORIES_BY_TYPE,
    TRANSACTION_CATEGORIES,
    TransactionType,
)
from .duplicates import (
    DuplicateRegistry,
    default_registry,
    is_duplicate_transaction,
    record_transaction,
)
from .models import (
    ActionResult,
    ChartPoint,
    DashboardSummary,
    IdentityClaims,
    SettingsInput,
    TransactionInput,
    TransactionView,
    ValidationResult,
)
from .summary import build_dashboard, compute_summary, format_currency
from .validation import create_duplicate_key, validate_id, validate_transaction_data

__all__ = [
    # Validation
    "validate_transaction_data",
    "validate_id",
    "create_duplicate_key",
    # Duplicate suppression
    "DuplicateRegistry",
    "default_registry",
    "is_duplicate_transaction",
    "record_transaction",
    # Actions
    "parse_transaction_form",
    "create_transaction",
    "update_transaction",
    "delete_transaction",
    "list_transactions",
    "get_settings",
    "update_settings",
    "AuthenticationError",
    "find_user",
    "get_authenticated_user",
    # Dashboard
    "build_dashboard",
    "compute_summary",
    "format_currency",
    # Models / types
    "TransactionType",
    "TRANSACTION_CATEGORIES",
    "ALL_CATEGORIES",
    "CATEGORIES_BY_TYPE",
    "TransactionInput",
    "ValidationResult",
    "ActionResult",
    "IdentityClaims",
    "SettingsInput",
    "ChartPoint",
    "TransactionView",
    "DashboardSummary",
]
