"""
Derived View Models

Nothing here is persisted. Every model is recomputed from the raw
transaction log by the aggregation engine.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from pocketwatch.models.transaction import Category, Transaction


class BudgetStatus(str, Enum):
    """How far into the monthly budget the spending has gone."""
    ON_TRACK = "on_track"   # under 50%
    WARNING = "warning"     # 50% to 75%
    OVER = "over"           # 75% and above


class SavingsMilestone(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    GREAT_PROGRESS = "great_progress"
    HALFWAY = "halfway"
    ALMOST_THERE = "almost_there"
    ACHIEVED = "achieved"


class MonthlyAggregate(BaseModel):
    """One month of a year-long savings projection."""

    month: int = Field(..., ge=0, le=11, description="Month index (0 = January)")
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    savings: Decimal = Field(
        default=Decimal("0"),
        description="income - expenses, may be negative",
    )
    cumulative: Decimal = Field(
        default=Decimal("0"),
        description="Running sum of savings for months 0..month",
    )


class CategoryTotal(BaseModel):
    category: Category
    amount: Decimal
    percentage: float = Field(..., ge=0.0, le=100.0)


class BudgetSummary(BaseModel):
    budget: Decimal
    spending: Decimal
    remaining: Decimal = Field(..., description="budget - spending, may be negative")
    progress: float = Field(..., ge=0.0, description="Spending as a percentage of budget")
    status: BudgetStatus


class SavingsGoalProgress(BaseModel):
    """Progress toward the end-of-year savings goal."""

    goal: Decimal
    total_saved: Decimal = Field(
        ...,
        description="Sum of positive monthly savings up to the reference month",
    )
    percent: float = Field(..., ge=0.0, le=100.0)
    remaining: Decimal = Field(..., ge=0)
    milestone: SavingsMilestone
    message: str


class MonthlySummary(BaseModel):
    """Everything the dashboard shows for one selected month."""

    year: int
    month: int = Field(..., ge=0, le=11)
    income: Decimal
    spending: Decimal
    budget: BudgetSummary
    categories: list[CategoryTotal] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
