"""Transaction listings - filtering, day grouping and summary totals"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Tuple

from pennypath_engine.domain.models import (
    Account,
    Category,
    DateRangeFilter,
    Event,
    Transaction,
    TransactionFilter,
    TransactionSummaryStats,
    TransactionTypeFilter,
)
from pennypath_engine.utils.date_utils import add_calendar_units_or_anchor
from pennypath_engine.utils.money import ZERO, to_money


def date_range_bounds(date_range: DateRangeFilter, now: datetime) -> Tuple[datetime, datetime]:
    """
    ``[start, end)`` of a named period; the trailing three months end at ``now`` inclusive.

    Weeks start on Monday.
    """
    midnight = datetime.combine(now.date(), datetime.min.time())

    if date_range is DateRangeFilter.TODAY:
        return midnight, midnight + timedelta(days=1)
    if date_range is DateRangeFilter.THIS_WEEK:
        start = midnight - timedelta(days=now.weekday())
        return start, start + timedelta(weeks=1)
    if date_range is DateRangeFilter.THIS_MONTH:
        start = midnight.replace(day=1)
        return start, add_calendar_units_or_anchor(start, "month", 1)
    if date_range is DateRangeFilter.LAST_MONTH:
        end = midnight.replace(day=1)
        return add_calendar_units_or_anchor(end, "month", -1), end
    if date_range is DateRangeFilter.LAST_3_MONTHS:
        return add_calendar_units_or_anchor(now, "month", -3), now + timedelta(microseconds=1)
    start = midnight.replace(month=1, day=1)
    return start, add_calendar_units_or_anchor(start, "year", 1)


def _matches_search(
    transaction: Transaction,
    needle: str,
    accounts: Mapping[str, Account],
    categories: Mapping[str, Category],
) -> bool:
    """Case-insensitive match on description, account name or category name"""
    if needle in transaction.description.casefold():
        return True
    account = accounts.get(transaction.account_id)
    if account is not None and needle in account.name.casefold():
        return True
    category = categories.get(transaction.category_id) if transaction.category_id else None
    return category is not None and needle in category.name.casefold()


def _matches_type(transaction: Transaction, transaction_type: TransactionTypeFilter) -> bool:
    if transaction_type is TransactionTypeFilter.INCOME:
        return transaction.amount > 0
    if transaction_type is TransactionTypeFilter.EXPENSE:
        return transaction.amount < 0
    if transaction_type is TransactionTypeFilter.TRANSFER:
        return transaction.category_id is None
    return True


def filter_transactions(
    transactions: Iterable[Transaction],
    criteria: TransactionFilter,
    now: datetime,
    accounts: Iterable[Account] = (),
    categories: Iterable[Category] = (),
) -> List[Transaction]:
    """
    Transactions matching every set criterion, newest first.

    Search text also matches the names of the transaction's account and
    category, looked up in ``accounts`` and ``categories``.
    """
    needle = criteria.search_text.strip().casefold()
    accounts_by_id = {a.id: a for a in accounts}
    categories_by_id = {c.id: c for c in categories}
    bounds = date_range_bounds(criteria.date_range, now) if criteria.date_range is not None else None

    matched = []
    for txn in transactions:
        if needle and not _matches_search(txn, needle, accounts_by_id, categories_by_id):
            continue
        if criteria.account_id is not None and txn.account_id != criteria.account_id:
            continue
        if criteria.category_id is not None and txn.category_id != criteria.category_id:
            continue
        if criteria.event_id is not None and txn.event_id != criteria.event_id:
            continue
        if not _matches_type(txn, criteria.transaction_type):
            continue
        if bounds is not None and not bounds[0] <= txn.date < bounds[1]:
            continue
        matched.append(txn)

    # sorted() is stable, so same-moment entries keep input order
    return sorted(matched, key=lambda t: t.date, reverse=True)


def group_by_day(transactions: Iterable[Transaction]) -> Dict[date, List[Transaction]]:
    """Transactions keyed by calendar day, newest day first, newest entry first within a day"""
    by_day: Dict[date, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        by_day[txn.date.date()].append(txn)

    return {
        day: sorted(by_day[day], key=lambda t: t.date, reverse=True)
        for day in sorted(by_day, reverse=True)
    }


def summarize_transactions(transactions: Iterable[Transaction]) -> TransactionSummaryStats:
    """Count, signed total, income, expense magnitude and mean amount"""
    amounts = [t.amount for t in transactions]
    total = sum(amounts, ZERO)
    income = sum((a for a in amounts if a > 0), ZERO)
    expense = sum((-a for a in amounts if a < 0), ZERO)
    average = to_money(total / len(amounts)) if amounts else ZERO

    return TransactionSummaryStats(
        total_transactions=len(amounts),
        total_amount=to_money(total),
        income_amount=to_money(income),
        expense_amount=to_money(expense),
        average_transaction=average,
    )


def transactions_on(transactions: Iterable[Transaction], day: date) -> List[Transaction]:
    """Entries dated on ``day``, newest first"""
    return sorted((t for t in transactions if t.date.date() == day), key=lambda t: t.date, reverse=True)


def active_events(events: Iterable[Event], now: datetime) -> List[Event]:
    """Events currently running at ``now``, soonest ending first; open-ended events last"""
    running = [e for e in events if e.is_currently_active(now)]
    return sorted(running, key=lambda e: (e.end_date is None, e.end_date or now))
