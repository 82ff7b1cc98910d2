"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and backend-agnostic.
Every function takes the raw transaction list and returns derived view
models; nothing here touches a store or the session.

Grouping is by the LOCAL calendar month/year of created_at. Months are
indexed 0-11 (0 = January) to match the twelve-slot projection.
"""

from decimal import Decimal
from typing import Iterable

from pocketwatch.models.summary import (
    BudgetStatus,
    BudgetSummary,
    CategoryTotal,
    MonthlyAggregate,
    MonthlySummary,
    SavingsGoalProgress,
    SavingsMilestone,
)
from pocketwatch.models.transaction import (
    BudgetSettings,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")

_MILESTONE_MESSAGES = {
    SavingsMilestone.ACHIEVED: "Goal achieved!",
    SavingsMilestone.ALMOST_THERE: "Almost there! Keep going!",
    SavingsMilestone.HALFWAY: "Halfway to your goal!",
    SavingsMilestone.GREAT_PROGRESS: "Great progress!",
    SavingsMilestone.STARTED: "You've started saving!",
    SavingsMilestone.NOT_STARTED: "Start saving to reach your goal",
}


def _month_key(transaction: Transaction) -> tuple[int, int]:
    day = transaction.local_day
    return day.year, day.month - 1


def _sum(transactions: Iterable[Transaction], tx_type: TransactionType) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.type == tx_type),
        ZERO,
    )


def month_transactions(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[Transaction]:
    """Transactions in one calendar month, newest first by effective date."""
    selected = [t for t in transactions if _month_key(t) == (year, month)]
    selected.sort(key=lambda t: t.created_at, reverse=True)
    return selected


def monthly_spending(transactions: Iterable[Transaction], year: int, month: int) -> Decimal:
    return _sum(month_transactions(transactions, year, month), TransactionType.EXPENSE)


def monthly_income(transactions: Iterable[Transaction], year: int, month: int) -> Decimal:
    return _sum(month_transactions(transactions, year, month), TransactionType.INCOME)


def category_breakdown(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[CategoryTotal]:
    """
    Expense totals per category for a month, largest first.

    Percentages are shares of that month's total spending.
    """
    groups: dict = {}
    for t in month_transactions(transactions, year, month):
        if t.type != TransactionType.EXPENSE:
            continue
        groups[t.category] = groups.get(t.category, ZERO) + t.amount

    total = sum(groups.values(), ZERO)
    breakdown = [
        CategoryTotal(
            category=category,
            amount=amount,
            percentage=float(amount / total * 100) if total > 0 else 0.0,
        )
        for category, amount in groups.items()
    ]
    breakdown.sort(key=lambda c: c.amount, reverse=True)
    return breakdown


def monthly_aggregates(
    transactions: Iterable[Transaction],
    year: int,
) -> list[MonthlyAggregate]:
    """
    Twelve-month savings projection for a year.

    Months without transactions carry the running total forward with
    zero savings.
    """
    income = [ZERO] * 12
    expenses = [ZERO] * 12

    for t in transactions:
        tx_year, month = _month_key(t)
        if tx_year != year:
            continue
        if t.type == TransactionType.INCOME:
            income[month] += t.amount
        else:
            expenses[month] += t.amount

    aggregates = []
    cumulative = ZERO
    for month in range(12):
        savings = income[month] - expenses[month]
        cumulative += savings
        aggregates.append(MonthlyAggregate(
            month=month,
            income=income[month],
            expenses=expenses[month],
            savings=savings,
            cumulative=cumulative,
        ))
    return aggregates


def budget_summary(spending: Decimal, budget: Decimal) -> BudgetSummary:
    progress = float(spending / budget * 100)
    if progress < 50:
        status = BudgetStatus.ON_TRACK
    elif progress < 75:
        status = BudgetStatus.WARNING
    else:
        status = BudgetStatus.OVER
    return BudgetSummary(
        budget=budget,
        spending=spending,
        remaining=budget - spending,
        progress=progress,
        status=status,
    )


def savings_goal_progress(
    aggregates: list[MonthlyAggregate],
    goal: Decimal,
    through_month: int,
) -> SavingsGoalProgress:
    """
    Progress toward the savings goal up to and including through_month.

    Only positive monthly savings count toward the total; a month where
    expenses exceeded income does not eat into what was already saved.
    """
    total_saved = sum(
        (max(a.savings, ZERO) for a in aggregates[: through_month + 1]),
        ZERO,
    )
    percent = min(float(total_saved / goal * 100), 100.0)

    if percent >= 100:
        milestone = SavingsMilestone.ACHIEVED
    elif percent >= 75:
        milestone = SavingsMilestone.ALMOST_THERE
    elif percent >= 50:
        milestone = SavingsMilestone.HALFWAY
    elif percent >= 25:
        milestone = SavingsMilestone.GREAT_PROGRESS
    elif percent > 0:
        milestone = SavingsMilestone.STARTED
    else:
        milestone = SavingsMilestone.NOT_STARTED

    return SavingsGoalProgress(
        goal=goal,
        total_saved=total_saved,
        percent=percent,
        remaining=max(goal - total_saved, ZERO),
        milestone=milestone,
        message=_MILESTONE_MESSAGES[milestone],
    )


def monthly_summary(
    transactions: Iterable[Transaction],
    settings: BudgetSettings,
    year: int,
    month: int,
) -> MonthlySummary:
    """Budget, category and transaction view for one selected month."""
    selected = month_transactions(transactions, year, month)
    spending = _sum(selected, TransactionType.EXPENSE)
    return MonthlySummary(
        year=year,
        month=month,
        income=_sum(selected, TransactionType.INCOME),
        spending=spending,
        budget=budget_summary(spending, settings.monthly_budget),
        categories=category_breakdown(selected, year, month),
        transactions=selected,
    )
