"""Unit tests for transaction listings and events"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from pennypath_engine.domain.ledger_queries import (
    active_events,
    date_range_bounds,
    filter_transactions,
    group_by_day,
    summarize_transactions,
    transactions_on,
)
from pennypath_engine.domain.models import (
    Category,
    DateRangeFilter,
    Event,
    TransactionFilter,
    TransactionTypeFilter,
)


@pytest.fixture
def ledger(make_transaction):
    return [
        make_transaction("-42.10", datetime(2025, 6, 14, 19, 0), txn_id="tesco", description="Tesco Extra", category_id="cat-food"),
        make_transaction("2500.00", datetime(2025, 6, 1, 9, 0), txn_id="salary", description="Salary", category_id="cat-income"),
        make_transaction("-9.99", datetime(2025, 6, 14, 8, 0), txn_id="netflix", description="Netflix", category_id="cat-subs", event_id="ev-trip"),
        make_transaction("-200.00", datetime(2025, 6, 10, 12, 0), txn_id="move", description="Transfer to Savings"),
        make_transaction("-15.00", datetime(2025, 5, 28, 12, 0), txn_id="may", description="Pub", category_id="cat-food"),
        make_transaction("-60.00", datetime(2025, 6, 3, 12, 0), account_id="acc-card", txn_id="card", description="Fuel"),
    ]


@pytest.fixture
def categories():
    return [
        Category(id="cat-food", user_id="user-1", name="Groceries"),
        Category(id="cat-income", user_id="user-1", name="Income"),
        Category(id="cat-subs", user_id="user-1", name="Subscriptions"),
    ]


@pytest.mark.parametrize(
    "date_range,expected",
    [
        (DateRangeFilter.TODAY, (datetime(2025, 6, 16), datetime(2025, 6, 17))),
        (DateRangeFilter.THIS_WEEK, (datetime(2025, 6, 16), datetime(2025, 6, 23))),
        (DateRangeFilter.THIS_MONTH, (datetime(2025, 6, 1), datetime(2025, 7, 1))),
        (DateRangeFilter.LAST_MONTH, (datetime(2025, 5, 1), datetime(2025, 6, 1))),
        (DateRangeFilter.THIS_YEAR, (datetime(2025, 1, 1), datetime(2026, 1, 1))),
    ],
)
def test_date_range_bounds(now, date_range, expected):
    assert date_range_bounds(date_range, now) == expected


def test_trailing_three_months_ends_at_now(now):
    start, end = date_range_bounds(DateRangeFilter.LAST_3_MONTHS, now)

    assert start == datetime(2025, 3, 16, 12, 0)
    assert start <= now < end


def test_default_filter_is_this_month_newest_first(ledger, now):
    matched = filter_transactions(ledger, TransactionFilter(), now)

    assert [t.id for t in matched] == ["tesco", "netflix", "move", "card", "salary"]


def test_search_matches_description_account_and_category(ledger, categories, make_account, now):
    accounts = [make_account("acc-current"), make_account("acc-card")]

    by_description = filter_transactions(ledger, TransactionFilter(search_text="netFLIX"), now, accounts, categories)
    by_category = filter_transactions(ledger, TransactionFilter(search_text="grocer"), now, accounts, categories)
    by_account = filter_transactions(ledger, TransactionFilter(search_text="acc-card"), now, accounts, categories)

    assert [t.id for t in by_description] == ["netflix"]
    assert [t.id for t in by_category] == ["tesco"]
    assert [t.id for t in by_account] == ["card"]


@pytest.mark.parametrize(
    "criteria,expected",
    [
        (TransactionFilter(account_id="acc-card"), ["card"]),
        (TransactionFilter(category_id="cat-food"), ["tesco"]),
        (TransactionFilter(event_id="ev-trip"), ["netflix"]),
        (TransactionFilter(transaction_type=TransactionTypeFilter.INCOME), ["salary"]),
        (TransactionFilter(transaction_type=TransactionTypeFilter.TRANSFER), ["move", "card"]),
        (TransactionFilter(category_id="cat-food", date_range=None), ["tesco", "may"]),
        (TransactionFilter(date_range=DateRangeFilter.LAST_MONTH), ["may"]),
    ],
)
def test_filter_criteria(ledger, now, criteria, expected):
    assert [t.id for t in filter_transactions(ledger, criteria, now)] == expected


def test_expense_filter_excludes_income(ledger, now):
    matched = filter_transactions(ledger, TransactionFilter(transaction_type=TransactionTypeFilter.EXPENSE), now)

    assert all(t.amount < 0 for t in matched)
    assert len(matched) == 4


def test_has_active_filters():
    assert TransactionFilter().has_active_filters is False
    assert TransactionFilter(search_text="rent").has_active_filters is True
    assert TransactionFilter(date_range=DateRangeFilter.THIS_YEAR).has_active_filters is True


def test_group_by_day(ledger, now):
    groups = group_by_day(filter_transactions(ledger, TransactionFilter(), now))

    assert list(groups) == [date(2025, 6, 14), date(2025, 6, 10), date(2025, 6, 3), date(2025, 6, 1)]
    assert [t.id for t in groups[date(2025, 6, 14)]] == ["tesco", "netflix"]


def test_transactions_on_day(ledger):
    assert [t.id for t in transactions_on(ledger, date(2025, 6, 14))] == ["tesco", "netflix"]
    assert transactions_on(ledger, date(2025, 6, 15)) == []


def test_summary_stats(ledger, now):
    stats = summarize_transactions(filter_transactions(ledger, TransactionFilter(), now))

    assert stats.total_transactions == 5
    assert stats.income_amount == Decimal("2500.00")
    assert stats.expense_amount == Decimal("312.09")
    assert stats.net_amount == Decimal("2187.91")
    assert stats.total_amount == Decimal("2187.91")
    assert stats.average_transaction == Decimal("437.58")


def test_summary_stats_empty():
    stats = summarize_transactions([])

    assert stats.total_transactions == 0
    assert stats.average_transaction == Decimal("0.00")
    assert stats.net_amount == Decimal("0.00")


def _event(event_id, start=None, end=None, is_active=True):
    return Event(id=event_id, user_id="user-1", name=event_id, start_date=start, end_date=end, is_active=is_active)


def test_event_is_currently_active(now):
    assert _event("open").is_currently_active(now) is True
    assert _event("running", now - timedelta(days=3), now + timedelta(days=3)).is_currently_active(now) is True
    assert _event("upcoming", now + timedelta(days=1)).is_currently_active(now) is False
    assert _event("over", end=now - timedelta(seconds=1)).is_currently_active(now) is False
    assert _event("switched-off", is_active=False).is_currently_active(now) is False


def test_active_events_sorted_by_end(now):
    events = [
        _event("open"),
        _event("later", end=now + timedelta(days=30)),
        _event("soon", end=now + timedelta(days=2)),
        _event("past", end=now - timedelta(days=2)),
    ]

    assert [e.id for e in active_events(events, now)] == ["soon", "later", "open"]
