"""Unit tests for budget aggregation"""

import pytest
from datetime import datetime
from decimal import Decimal
from pennypath_engine.domain.budgets import (
    calculate_budget_progress,
    current_month_income,
    current_month_spending,
    spending_by_category,
)
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics


@pytest.fixture
def june_food_spending(make_transaction):
    return [
        make_transaction("-120.00", datetime(2025, 6, 2, 18, 0), category_id="cat-food"),
        make_transaction("-80.00", datetime(2025, 6, 9, 18, 0), category_id="cat-food"),
        make_transaction("-50.00", datetime(2025, 6, 14, 18, 0), category_id="cat-food"),
    ]


def test_budget_progress(make_budget, food_category, june_food_spending):
    """400.00 limit with 250.00 posted spend"""
    [progress] = calculate_budget_progress([make_budget()], june_food_spending, [food_category], 6, 2025)

    assert progress.spent_amount == Decimal("250.00")
    assert progress.progress_percentage == pytest.approx(0.625)
    assert progress.is_over_budget is False
    assert progress.remaining_amount == Decimal("150.00")
    assert progress.category_name == "Food"
    assert progress.category_color == "#ff8800"


def test_scheduled_spending_never_counts(make_budget, make_transaction, food_category, june_food_spending, now):
    scheduled = make_transaction("-200.00", datetime(2025, 6, 25), category_id="cat-food", is_scheduled=True)
    transactions = june_food_spending + [scheduled]

    [progress] = calculate_budget_progress([make_budget()], transactions, [food_category], 6, 2025)

    assert progress.spent_amount == Decimal("250.00")
    assert current_month_spending(transactions, now) == Decimal("250.00")


def test_only_outflows_in_month_and_category(make_transaction):
    transactions = [
        make_transaction("-10.00", datetime(2025, 6, 1), category_id="cat-food"),
        make_transaction("35.00", datetime(2025, 6, 1), category_id="cat-food"),  # refund
        make_transaction("-70.00", datetime(2025, 5, 31, 23, 59), category_id="cat-food"),
        make_transaction("-15.00", datetime(2025, 6, 30, 23, 59), category_id="cat-fuel"),
        make_transaction("-99.00", datetime(2025, 6, 3)),  # uncategorised
    ]

    assert spending_by_category(transactions, 6, 2025) == {
        "cat-food": Decimal("10.00"),
        "cat-fuel": Decimal("15.00"),
    }


def test_budget_with_missing_category_is_skipped(make_budget, food_category):
    diagnostics = Diagnostics()
    budgets = [make_budget(), make_budget(budget_id="budget-2", category_id="cat-gone")]

    progress = calculate_budget_progress(budgets, [], [food_category], 6, 2025, diagnostics=diagnostics)

    assert [p.budget_id for p in progress] == ["budget-1"]
    assert diagnostics.count(DiagnosticKind.DANGLING_REFERENCE) == 1


def test_zero_limit_reports_zero_progress(make_budget, food_category, june_food_spending):
    diagnostics = Diagnostics()

    [progress] = calculate_budget_progress(
        [make_budget(amount="0.00")], june_food_spending, [food_category], 6, 2025, diagnostics=diagnostics
    )

    assert progress.progress_percentage == 0.0
    assert progress.is_over_budget is True
    assert progress.remaining_amount == Decimal("0.00")
    assert diagnostics.count(DiagnosticKind.INVALID_NUMERIC) == 1


def test_over_budget(make_budget, food_category, june_food_spending):
    [progress] = calculate_budget_progress([make_budget(amount="200.00")], june_food_spending, [food_category], 6, 2025)

    assert progress.is_over_budget is True
    assert progress.progress_percentage == 1.0
    assert progress.remaining_amount == Decimal("0.00")


@pytest.mark.parametrize("month", [0, 13])
def test_month_outside_calendar(make_budget, food_category, month):
    diagnostics = Diagnostics()

    assert calculate_budget_progress([make_budget()], [], [food_category], month, 2025, diagnostics=diagnostics) == []
    assert diagnostics.count(DiagnosticKind.INVALID_NUMERIC) == 1


def test_other_months_are_not_evaluated(make_budget, food_category):
    assert calculate_budget_progress([make_budget(month=5)], [], [food_category], 6, 2025) == []


def test_duplicate_budgets_latest_wins(make_budget, food_category):
    diagnostics = Diagnostics()
    budgets = [
        make_budget(amount="300.00", budget_id="early", created_at=datetime(2025, 5, 1)),
        make_budget(amount="500.00", budget_id="late", created_at=datetime(2025, 5, 20)),
    ]

    progress = calculate_budget_progress(budgets, [], [food_category], 6, 2025, duplicate_policy="latest", diagnostics=diagnostics)

    assert [(p.budget_id, p.budget_amount) for p in progress] == [("late", Decimal("500.00"))]
    assert diagnostics.count(DiagnosticKind.DUPLICATE_BUDGET) == 1


def test_duplicate_budgets_without_timestamps_keep_later_input(make_budget, food_category):
    budgets = [make_budget(amount="300.00", budget_id="first"), make_budget(amount="500.00", budget_id="second")]

    [progress] = calculate_budget_progress(budgets, [], [food_category], 6, 2025, duplicate_policy="latest")

    assert progress.budget_id == "second"


def test_duplicate_budgets_summed(make_budget, food_category):
    budgets = [make_budget(amount="300.00", budget_id="first"), make_budget(amount="500.00", budget_id="second")]

    [progress] = calculate_budget_progress(budgets, [], [food_category], 6, 2025, duplicate_policy="sum")

    assert progress.budget_id == "first"
    assert progress.budget_amount == Decimal("800.00")


def test_budget_aggregation_is_idempotent(make_budget, food_category, june_food_spending):
    args = ([make_budget()], june_food_spending, [food_category], 6, 2025)

    assert calculate_budget_progress(*args) == calculate_budget_progress(*args)


def test_current_month_income(make_transaction, now):
    transactions = [
        make_transaction("2500.00", datetime(2025, 6, 1, 9, 0)),
        make_transaction("2500.00", datetime(2025, 7, 1, 9, 0), is_scheduled=True),
        make_transaction("-40.00", datetime(2025, 6, 3)),
    ]

    assert current_month_income(transactions, now) == Decimal("2500.00")
    assert current_month_spending(transactions, now) == Decimal("40.00")
