"""Recurrence expansion - materializes dated occurrences of scheduled transactions"""

from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional, Tuple

from pennypath_engine.config import settings
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics, note
from pennypath_engine.domain.exceptions import MalformedRecurrenceError
from pennypath_engine.domain.models import ProjectedOccurrence, RecurrenceRule, Transaction
from pennypath_engine.utils.date_utils import end_of_day


def resolve_rule(transaction: Transaction, diagnostics: Optional[Diagnostics] = None) -> Optional[RecurrenceRule]:
    """Recurrence rule of ``transaction``; malformed values count as non-recurring"""
    try:
        return RecurrenceRule.parse_strict(transaction.recurrence)
    except MalformedRecurrenceError as e:
        note(diagnostics, DiagnosticKind.MALFORMED_RECURRENCE, transaction.id, str(e))
        return None


def _walk(
    transaction: Transaction,
    start: datetime,
    end: datetime,
    max_iterations: int,
    diagnostics: Optional[Diagnostics],
) -> Iterator[Tuple[int, datetime]]:
    """(occurrence index, date) pairs inside the window; index 0 is the source date"""
    rule = resolve_rule(transaction, diagnostics)
    current = transaction.date

    if rule is None:
        if start <= current <= end:
            yield 0, current
        return

    # Fixed-length rules jump straight to the last occurrence before the window
    skipped = 0
    step = rule.fixed_step
    if step is not None and current < start:
        skipped = (start - current) // step
        current += step * skipped

    for index in range(skipped, skipped + max_iterations):
        if current > end:
            return
        if current >= start:
            yield index, current

        following = rule.next_date(current)
        if following <= current:
            note(
                diagnostics,
                DiagnosticKind.CALENDAR_FALLBACK,
                transaction.id,
                f"Recurrence {rule.value} could not advance past {current.isoformat()}",
            )
            return
        current = following

    if current <= end:
        note(
            diagnostics,
            DiagnosticKind.RECURRENCE_LIMIT,
            transaction.id,
            f"Recurrence {rule.value} stopped after {max_iterations} steps at {current.isoformat()}",
        )


def indexed_occurrences(
    transaction: Transaction,
    start: datetime,
    end: datetime,
    max_iterations: Optional[int] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Iterator[Tuple[int, datetime]]:
    """Like ``expand_occurrences`` but paired with each occurrence's index in the series"""
    if max_iterations is None:
        max_iterations = settings.max_recurrence_iterations
    return _walk(transaction, start, end, max_iterations, diagnostics)


def expand_occurrences(
    transaction: Transaction,
    start: datetime,
    end: datetime,
    max_iterations: Optional[int] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Iterator[datetime]:
    """
    Lazily yield occurrence dates of ``transaction`` inside ``[start, end]``.

    Walks from the transaction's own date using its rule's ``next_date`` and
    stops once ``end`` is passed. Daily and weekly rules skip whole steps that
    end before ``start``. Output depends only on (date, rule, window).

    Safety nets:
    - a step that does not move strictly forward ends the expansion
    - at most ``max_iterations`` steps are taken from the first one walked
    """
    for _, occurs_at in indexed_occurrences(transaction, start, end, max_iterations, diagnostics):
        yield occurs_at


def horizon_end(now: datetime, horizon_days: int, diagnostics: Optional[Diagnostics] = None) -> datetime:
    """End of the day ``horizon_days`` after ``now``, clamped to the last representable day"""
    try:
        return end_of_day((now + timedelta(days=horizon_days)).date())
    except OverflowError:
        note(
            diagnostics,
            DiagnosticKind.CALENDAR_FALLBACK,
            None,
            f"Horizon of {horizon_days} days overflows; clamped to {date.max.isoformat()}",
        )
        return end_of_day(date.max)


def project_scheduled(
    transactions: Iterable[Transaction],
    now: datetime,
    horizon_days: Optional[int] = None,
    max_iterations: Optional[int] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> List[ProjectedOccurrence]:
    """
    Materialize every pending occurrence of scheduled transactions.

    Window is ``now`` through the end of the day ``horizon_days`` ahead.
    Posted transactions are history and are never projected. A paid scheduled
    transaction only projects its later recurrences.

    Returns occurrences sorted by date; same-date ties keep input order.
    """
    if horizon_days is None:
        horizon_days = settings.forecast_horizon_days
    if max_iterations is None:
        max_iterations = settings.max_recurrence_iterations

    end = horizon_end(now, horizon_days, diagnostics)

    occurrences: List[ProjectedOccurrence] = []
    for txn in transactions:
        if not txn.is_scheduled:
            continue
        for index, occurs_at in _walk(txn, now, end, max_iterations, diagnostics):
            if txn.is_paid and index == 0:
                continue
            occurrences.append(ProjectedOccurrence(transaction=txn, date=occurs_at, occurrence_index=index))

    # sorted() is stable, so same-moment occurrences keep input order
    return sorted(occurrences, key=lambda o: o.date)
