"""
Tests for the aggregation engine.

All inputs are plain transaction lists; no store is involved.
"""

from datetime import date
from decimal import Decimal

import pytest

from pocketwatch.aggregation import (
    budget_summary,
    category_breakdown,
    month_transactions,
    monthly_aggregates,
    monthly_income,
    monthly_spending,
    monthly_summary,
    savings_goal_progress,
)
from pocketwatch.models import (
    BudgetSettings,
    BudgetStatus,
    Category,
    MonthlyAggregate,
    SavingsMilestone,
    TransactionType,
)


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


@pytest.fixture
def year_of_transactions(make_tx):
    return [
        make_tx("1", "3000", INCOME, "Income", date(2024, 1, 5)),
        make_tx("2", "600", EXPENSE, "Food", date(2024, 1, 10)),
        make_tx("3", "400", EXPENSE, "Transport", date(2024, 1, 20)),
        make_tx("4", "500", EXPENSE, "Shopping", date(2024, 2, 14)),
        make_tx("5", "999", EXPENSE, "Food", date(2023, 12, 31)),
    ]


class TestMonthFiltering:
    def test_month_index_is_zero_based(self, year_of_transactions):
        """Test that month 0 is January."""
        january = month_transactions(year_of_transactions, 2024, 0)
        assert {t.id for t in january} == {"1", "2", "3"}

    def test_newest_first(self, year_of_transactions):
        """Test ordering by effective date, newest first."""
        january = month_transactions(year_of_transactions, 2024, 0)
        assert [t.id for t in january] == ["3", "2", "1"]

    def test_year_boundary(self, year_of_transactions):
        """Test that December of the previous year is separate."""
        december = month_transactions(year_of_transactions, 2023, 11)
        assert [t.id for t in december] == ["5"]

    def test_spending_and_income(self, year_of_transactions):
        """Test monthly totals by type."""
        assert monthly_spending(year_of_transactions, 2024, 0) == Decimal("1000")
        assert monthly_income(year_of_transactions, 2024, 0) == Decimal("3000")
        assert monthly_spending(year_of_transactions, 2024, 5) == Decimal("0")


class TestCategoryBreakdown:
    def test_sorted_largest_first(self, year_of_transactions):
        """Test that categories are ordered by amount."""
        breakdown = category_breakdown(year_of_transactions, 2024, 0)
        assert [c.category for c in breakdown] == [Category.FOOD, Category.TRANSPORT]
        assert breakdown[0].percentage == pytest.approx(60.0)

    def test_income_is_excluded(self, year_of_transactions):
        """Test that income never appears in the spending breakdown."""
        breakdown = category_breakdown(year_of_transactions, 2024, 0)
        assert Category.INCOME not in [c.category for c in breakdown]

    def test_empty_month(self, year_of_transactions):
        """Test an empty breakdown for a month without spending."""
        assert category_breakdown(year_of_transactions, 2024, 6) == []


class TestMonthlyAggregates:
    def test_twelve_months(self, year_of_transactions):
        """Test that the projection always has twelve entries."""
        aggregates = monthly_aggregates(year_of_transactions, 2024)
        assert [a.month for a in aggregates] == list(range(12))

    def test_savings_and_cumulative(self, year_of_transactions):
        """Test savings per month and the running total."""
        aggregates = monthly_aggregates(year_of_transactions, 2024)
        assert aggregates[0].savings == Decimal("2000")
        assert aggregates[1].savings == Decimal("-500")
        assert aggregates[1].cumulative == Decimal("1500")

    def test_empty_months_carry_forward(self, year_of_transactions):
        """Test that months without transactions keep the running total."""
        aggregates = monthly_aggregates(year_of_transactions, 2024)
        assert aggregates[2].savings == Decimal("0")
        assert aggregates[11].cumulative == Decimal("1500")

    def test_other_years_ignored(self, year_of_transactions):
        """Test that only the requested year is aggregated."""
        aggregates = monthly_aggregates(year_of_transactions, 2023)
        assert aggregates[11].expenses == Decimal("999")
        assert sum(a.income for a in aggregates) == Decimal("0")


class TestBudgetSummary:
    @pytest.mark.parametrize("spending, status", [
        ("1000", BudgetStatus.ON_TRACK),
        ("1500", BudgetStatus.WARNING),
        ("2400", BudgetStatus.OVER),
    ])
    def test_status_tiers(self, spending, status):
        """Test the under-50 / under-75 / over tiers."""
        assert budget_summary(Decimal(spending), Decimal("3000")).status == status

    def test_overspending(self):
        """Test that remaining goes negative past the budget."""
        summary = budget_summary(Decimal("3600"), Decimal("3000"))
        assert summary.remaining == Decimal("-600")
        assert summary.progress == pytest.approx(120.0)


class TestSavingsGoalProgress:
    def _aggregates(self, savings):
        return [
            MonthlyAggregate(month=i, savings=Decimal(value))
            for i, value in enumerate(savings)
        ]

    def test_only_positive_months_count(self):
        """Test that a negative month does not reduce what was saved."""
        progress = savings_goal_progress(
            self._aggregates(["2000", "-500"]), Decimal("5000"), through_month=1
        )
        assert progress.total_saved == Decimal("2000")
        assert progress.percent == pytest.approx(40.0)
        assert progress.remaining == Decimal("3000")
        assert progress.milestone == SavingsMilestone.GREAT_PROGRESS

    def test_months_after_reference_are_ignored(self):
        """Test that only months up to through_month are summed."""
        progress = savings_goal_progress(
            self._aggregates(["1000", "1000", "1000"]), Decimal("5000"), through_month=0
        )
        assert progress.total_saved == Decimal("1000")

    def test_achieved_is_capped(self):
        """Test that percent caps at 100 and remaining floors at 0."""
        progress = savings_goal_progress(
            self._aggregates(["7000"]), Decimal("5000"), through_month=0
        )
        assert progress.percent == 100.0
        assert progress.remaining == Decimal("0")
        assert progress.milestone == SavingsMilestone.ACHIEVED

    def test_nothing_saved(self):
        """Test the not-started message."""
        progress = savings_goal_progress(
            self._aggregates(["-100"]), Decimal("5000"), through_month=0
        )
        assert progress.milestone == SavingsMilestone.NOT_STARTED
        assert progress.message == "Start saving to reach your goal"


class TestMonthlySummary:
    def test_summary_combines_views(self, year_of_transactions):
        """Test the dashboard summary for one month."""
        summary = monthly_summary(
            year_of_transactions,
            BudgetSettings(monthly_budget=Decimal("2000")),
            2024,
            0,
        )
        assert summary.spending == Decimal("1000")
        assert summary.income == Decimal("3000")
        assert summary.budget.progress == pytest.approx(50.0)
        assert summary.budget.status == BudgetStatus.WARNING
        assert len(summary.transactions) == 3
        assert summary.categories[0].category == Category.FOOD
