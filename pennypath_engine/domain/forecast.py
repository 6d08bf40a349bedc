"""Balance forecasting - lookback reconstruction plus forward projection per account"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from pennypath_engine.config import settings
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics, note
from pennypath_engine.domain.models import (
    Account,
    BalanceForecast,
    ForecastPoint,
    ProjectedOccurrence,
    Transaction,
)
from pennypath_engine.domain.recurrence import indexed_occurrences, project_scheduled
from pennypath_engine.utils.money import ZERO, to_money


def forecast_balance(
    account: Account,
    transactions: Iterable[Transaction],
    now: datetime,
    horizon_days: Optional[int] = None,
    lookback_days: Optional[int] = None,
    occurrences: Optional[Sequence[ProjectedOccurrence]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> BalanceForecast:
    """
    Project an account's balance across ``[today - lookback, today + horizon]``.

    Requirements:
    - Exactly ``lookback_days + horizon_days + 1`` daily points, oldest first
    - Historical points walk backward from the current balance, undoing
      posted transactions; scheduled ones never touch history
    - Today's point is anchored on the current balance (plus anything still
      scheduled for later today)
    - Forward points add every projected occurrence on its due day, all
      same-day occurrences before moving on

    Args:
        account: Account whose ``balance`` anchors the series
        transactions: Ledger; records for other accounts are ignored
        now: Reference timestamp
        horizon_days: Days to project (default from settings)
        lookback_days: Days to reconstruct (default from settings)
        occurrences: Pre-expanded occurrences, when the caller already has them
        diagnostics: Collector for degraded-result notices

    Example:
        balance 100.00, -25.00 due in 5 days, +50.00 due in 10 days
        → final point 125.00
    """
    horizon_days = _window(horizon_days, settings.forecast_horizon_days, "horizon_days", account.id, diagnostics)
    lookback_days = _window(lookback_days, settings.forecast_lookback_days, "lookback_days", account.id, diagnostics)

    today = now.date()
    own = [t for t in transactions if t.account_id == account.id]

    # Days past the calendar's range are anchored on today, noted once per forecast
    reach_forward = min(horizon_days, (date.max - today).days)
    reach_back = min(lookback_days, (today - date.min).days)
    if reach_forward < horizon_days or reach_back < lookback_days:
        note(
            diagnostics,
            DiagnosticKind.CALENDAR_FALLBACK,
            account.id,
            f"Window -{lookback_days}/+{horizon_days} days from {today.isoformat()} leaves the calendar; "
            f"{horizon_days - reach_forward + lookback_days - reach_back} points anchored on today",
        )

    # Posted amounts by day; anything posted is already inside the balance
    posted_by_day: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    for txn in own:
        if txn.is_posted and txn.date.date() <= today:
            posted_by_day[txn.date.date()] += txn.amount

    if occurrences is None:
        occurrences = project_scheduled(own, now, reach_forward, diagnostics=diagnostics)
    projected_by_day: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    for occurrence in occurrences:
        if occurrence.account_id == account.id:
            projected_by_day[occurrence.date.date()] += occurrence.amount

    # Walk backward: close of (today - k) = close of (today - k + 1) - posted on (today - k + 1)
    history: List[ForecastPoint] = []
    balance = account.balance
    later_day: Optional[date] = today
    for offset in range(1, lookback_days + 1):
        balance -= posted_by_day.get(later_day, ZERO)
        day = today - timedelta(days=offset) if offset <= reach_back else today
        history.append(ForecastPoint(date=day, balance=to_money(balance), is_projected=False))
        later_day = day if day != today else None
    history.reverse()

    due_today = projected_by_day.get(today)
    balance = account.balance + (due_today or ZERO)
    points = history + [ForecastPoint(date=today, balance=to_money(balance), is_projected=due_today is not None)]

    for offset in range(1, horizon_days + 1):
        day = today
        if offset <= reach_forward:
            day = today + timedelta(days=offset)
            balance += projected_by_day.get(day, ZERO)
        points.append(ForecastPoint(date=day, balance=to_money(balance), is_projected=True))

    return BalanceForecast(account_id=account.id, current_balance=account.balance, points=tuple(points))


def forecast_accounts(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    now: datetime,
    horizon_days: Optional[int] = None,
    lookback_days: Optional[int] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> List[BalanceForecast]:
    """Forecast every account, grouping the ledger by account once"""
    by_account: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        by_account[txn.account_id].append(txn)

    return [
        forecast_balance(
            account,
            by_account.get(account.id, []),
            now,
            horizon_days=horizon_days,
            lookback_days=lookback_days,
            diagnostics=diagnostics,
        )
        for account in accounts
    ]


def upcoming_transactions(
    transactions: Iterable[Transaction],
    now: datetime,
    horizon_days: Optional[int] = None,
    limit: Optional[int] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> List[ProjectedOccurrence]:
    """
    Scheduled, unpaid, future-dated obligations within the horizon.

    Recurring transactions contribute one entry per occurrence. The same
    (transaction, date) pair only appears once even when the snapshot holds the
    record twice. Sorted by date; capped at ``limit`` when given.
    """
    seen = set()
    upcoming: List[ProjectedOccurrence] = []
    for occurrence in project_scheduled(transactions, now, horizon_days, diagnostics=diagnostics):
        key = (occurrence.transaction_id, occurrence.date)
        if key in seen:
            continue
        seen.add(key)
        upcoming.append(occurrence)

    if limit is not None:
        upcoming = upcoming[: max(limit, 0)]
    return upcoming


def next_bnpl_payment(
    transactions: Iterable[Transaction],
    now: datetime,
    diagnostics: Optional[Diagnostics] = None,
) -> Optional[ProjectedOccurrence]:
    """Earliest pending occurrence linked to a BNPL plan, however far ahead"""
    best: Optional[ProjectedOccurrence] = None
    for txn in transactions:
        if txn.bnpl_plan_id is None or not txn.is_scheduled or txn.is_paid:
            continue
        first = next(indexed_occurrences(txn, now, datetime.max, diagnostics=diagnostics), None)
        if first is None:
            continue
        index, occurs_at = first
        if best is None or occurs_at < best.date:
            best = ProjectedOccurrence(transaction=txn, date=occurs_at, occurrence_index=index)
    return best


def _window(value: Optional[int], default: int, name: str, account_id: str, diagnostics: Optional[Diagnostics]) -> int:
    if value is None:
        return default
    if value < 0:
        note(diagnostics, DiagnosticKind.INVALID_NUMERIC, account_id, f"Negative {name} ({value}) treated as 0")
        return 0
    return value
