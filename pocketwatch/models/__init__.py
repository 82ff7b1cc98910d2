"""
Data Models Package

This package contains all Pydantic models used in PocketWatch.
All data flowing between stores, coordinator and views conforms to these schemas.
"""

from pocketwatch.models.transaction import (
    DEFAULT_MONTHLY_BUDGET,
    DEFAULT_SAVINGS_GOAL,
    BudgetSettings,
    Category,
    LocalDocument,
    SettingsPatch,
    Transaction,
    TransactionCreate,
    TransactionPatch,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    apply_patch,
    local_date,
    merge_settings,
    resolve_created_at,
)
from pocketwatch.models.summary import (
    BudgetStatus,
    BudgetSummary,
    CategoryTotal,
    MonthlyAggregate,
    MonthlySummary,
    SavingsGoalProgress,
    SavingsMilestone,
)
from pocketwatch.models.session import (
    Identity,
    IdentityEvent,
    MutationOutcome,
    MutationResult,
    StorageBackend,
)
from pocketwatch.models.audit import (
    EventSeverity,
    SessionEvent,
    SessionEventBuilder,
    SessionEventType,
)

__all__ = [
    # Transaction models
    "DEFAULT_MONTHLY_BUDGET",
    "DEFAULT_SAVINGS_GOAL",
    "BudgetSettings",
    "Category",
    "LocalDocument",
    "SettingsPatch",
    "Transaction",
    "TransactionCreate",
    "TransactionPatch",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "apply_patch",
    "local_date",
    "merge_settings",
    "resolve_created_at",
    # Derived views
    "BudgetStatus",
    "BudgetSummary",
    "CategoryTotal",
    "MonthlyAggregate",
    "MonthlySummary",
    "SavingsGoalProgress",
    "SavingsMilestone",
    # Session models
    "Identity",
    "IdentityEvent",
    "MutationOutcome",
    "MutationResult",
    "StorageBackend",
    # Event models
    "EventSeverity",
    "SessionEvent",
    "SessionEventBuilder",
    "SessionEventType",
]
