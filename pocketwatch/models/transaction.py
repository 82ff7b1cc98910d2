"""
Core Data Models for PocketWatch

These models define the records that flow between the stores, the
coordinator and the aggregation engine. They are designed to:
1. Give both backends one record shape
2. Reject malformed input before it reaches a store
3. Serialize to the camelCase document the local store persists

DESIGN DECISION: Models accept both the Python field name and the camelCase
alias. The local document is written with aliases (createdAt, monthlyBudget),
remote rows are read by field name (created_at, monthly_budget).
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_MONTHLY_BUDGET = Decimal("3000")
DEFAULT_SAVINGS_GOAL = Decimal("5000")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    EXPENSE = "expense"
    INCOME = "income"


class Category(str, Enum):
    """
    Supported transaction categories.

    Declaration order is significant: the classifier walks categories
    in this order and the first keyword hit wins.
    """
    FOOD = "Food"
    UTILITIES = "Utilities"
    TRANSPORT = "Transport"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    SUBSCRIPTIONS = "Subscriptions"
    INCOME = "Income"
    OTHER = "Other"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def resolve_created_at(
    tx_date: Optional[date],
    now: Optional[datetime] = None,
) -> datetime:
    """
    Resolve the effective date-time of a transaction.

    A user-supplied calendar date is anchored at local noon so that
    converting to and from UTC never moves it to a neighbouring day.
    Without a date the creation instant is used.
    """
    if tx_date is not None:
        return datetime.combine(tx_date, time(12, 0)).astimezone()
    return (now or datetime.now()).astimezone()


def local_date(moment: datetime) -> date:
    """Calendar date of a datetime in the local time zone (naive = local)."""
    return moment.astimezone().date()


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(_CamelModel):
    """
    One financial event as held by a store.

    The record is owned by whichever store holds it. The coordinator's
    in-memory list is only a cache of it.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique identifier assigned by the store at creation",
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Free-text label",
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount",
    )
    type: TransactionType = Field(
        ...,
        description="Expense or income",
    )
    category: Category = Field(
        default=Category.OTHER,
        description="Category from the fixed set",
    )
    comment: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Optional note",
    )
    tx_date: Optional[date] = Field(
        default=None,
        alias="date",
        description="Calendar date supplied by the user",
    )
    created_at: datetime = Field(
        ...,
        description="Effective date-time used for grouping",
    )

    @property
    def local_day(self) -> date:
        return local_date(self.created_at)


class TransactionCreate(_CamelModel):
    """
    Input for a new transaction.

    Category is optional here: when it is missing the coordinator asks
    the classifier for a suggestion.
    """

    title: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    type: TransactionType = Field(...)
    category: Optional[Category] = None
    comment: Optional[str] = Field(default=None, max_length=1000)
    tx_date: Optional[date] = Field(default=None, alias="date")


class TransactionPatch(_CamelModel):
    """Partial update. Only fields that were explicitly set are merged."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    type: Optional[TransactionType] = None
    category: Optional[Category] = None
    comment: Optional[str] = Field(default=None, max_length=1000)
    tx_date: Optional[date] = Field(default=None, alias="date")

    def changes(self) -> dict:
        """Set fields keyed by Python field name."""
        return self.model_dump(exclude_unset=True)


def apply_patch(transaction: Transaction, patch: TransactionPatch) -> Transaction:
    """
    Merge a patch into an existing record.

    A new date recomputes created_at at local noon. Clearing the date keeps
    the current created_at. Every other field of the original record is
    preserved.
    """
    changes = patch.changes()
    if changes.get("tx_date") is not None:
        changes["created_at"] = resolve_created_at(changes["tx_date"])
    merged = {**transaction.model_dump(), **changes}
    return Transaction.model_validate(merged)


# =============================================================================
# SETTINGS
# =============================================================================

class BudgetSettings(_CamelModel):
    """Per-user or per-device configuration. Always resolves to defaults."""

    monthly_budget: Decimal = Field(
        default=DEFAULT_MONTHLY_BUDGET,
        gt=0,
        description="Monthly spending budget",
    )
    savings_goal: Decimal = Field(
        default=DEFAULT_SAVINGS_GOAL,
        gt=0,
        description="End-of-year savings goal",
    )


class SettingsPatch(_CamelModel):
    monthly_budget: Optional[Decimal] = Field(default=None, gt=0)
    savings_goal: Optional[Decimal] = Field(default=None, gt=0)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


def merge_settings(settings: BudgetSettings, patch: SettingsPatch) -> BudgetSettings:
    return BudgetSettings.model_validate({**settings.model_dump(), **patch.changes()})


# =============================================================================
# LOCAL DOCUMENT
# =============================================================================

class LocalDocument(_CamelModel):
    """
    The single document persisted by the local store.

    Shape: {"transactions": [...], "settings": {...}}. There is no
    version field; an unreadable document is replaced by defaults.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    settings: BudgetSettings = Field(default_factory=BudgetSettings)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating transaction input.

    Stage 1: Schema validation (required fields, types, bounds)
    Stage 2: Semantic validation (plausibility checks, warnings only)
    """

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
