"""Aggregation package."""

from pocketwatch.aggregation.engine import (
    budget_summary,
    category_breakdown,
    month_transactions,
    monthly_aggregates,
    monthly_income,
    monthly_spending,
    monthly_summary,
    savings_goal_progress,
)

__all__ = [
    "budget_summary",
    "category_breakdown",
    "month_transactions",
    "monthly_aggregates",
    "monthly_income",
    "monthly_spending",
    "monthly_summary",
    "savings_goal_progress",
]
