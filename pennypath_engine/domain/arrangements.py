"""Flexible arrangement tracking for family/friend loans and debt collection"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from pennypath_engine.config import settings
from pennypath_engine.domain.models import ArrangementStatus, FlexibleArrangement, Transaction
from pennypath_engine.utils.date_utils import in_month, whole_months_between
from pennypath_engine.utils.money import ZERO, to_money


def _posted_on_account(arrangement: FlexibleArrangement, transactions: Iterable[Transaction]) -> List[Transaction]:
    return [t for t in transactions if t.account_id == arrangement.account_id and t.is_posted]


def total_paid(arrangement: FlexibleArrangement, transactions: Iterable[Transaction]) -> Decimal:
    """Sum of absolute posted amounts on the arrangement's account"""
    return to_money(sum((abs(t.amount) for t in _posted_on_account(arrangement, transactions)), ZERO))


def remaining_balance(arrangement: FlexibleArrangement, transactions: Iterable[Transaction]) -> Decimal:
    """|original| - paid; negative when the arrangement has been overpaid"""
    return to_money(abs(arrangement.original_amount)) - total_paid(arrangement, transactions)


def paid_in_month(arrangement: FlexibleArrangement, transactions: Iterable[Transaction], now: datetime) -> Decimal:
    """Posted payments on the arrangement's account in the calendar month of ``now``"""
    return to_money(
        sum(
            (abs(t.amount) for t in _posted_on_account(arrangement, transactions) if in_month(t.date, now.year, now.month)),
            ZERO,
        )
    )


def is_overdue(arrangement: FlexibleArrangement, transactions: Iterable[Transaction], now: datetime) -> bool:
    """
    Whether this month's payments fall short of the agreed minimum.

    Arrangements without a minimum payment, or no longer active, are never
    overdue.

    Example:
        minimum 25.00; paid 10.00 this month → overdue
        minimum 25.00; paid 30.00 this month → not overdue
    """
    if arrangement.minimum_payment is None or not arrangement.is_active:
        return False
    return paid_in_month(arrangement, transactions, now) < arrangement.minimum_payment


def suggested_overpayment(
    arrangement: FlexibleArrangement,
    available_amount: Decimal,
    threshold: Optional[Decimal] = None,
) -> Optional[Decimal]:
    """
    Amount above the minimum worth paying from ``available_amount``.

    Returns None when there is no minimum payment or when the surplus is
    below ``threshold`` (default from settings).
    """
    if threshold is None:
        threshold = settings.overpayment_threshold
    if arrangement.minimum_payment is None:
        return None

    surplus = to_money(available_amount - arrangement.minimum_payment)
    return surplus if surplus >= threshold else None


def progress(arrangement: FlexibleArrangement, transactions: Iterable[Transaction]) -> float:
    """Repaid share of the original amount, capped at 1.0"""
    original = abs(arrangement.original_amount)
    if original == 0:
        return 0.0
    return min(float(total_paid(arrangement, transactions) / original), 1.0)


def required_monthly_payment(
    arrangement: FlexibleArrangement,
    transactions: Iterable[Transaction],
    now: datetime,
) -> Optional[Decimal]:
    """Even monthly payment that clears the balance by the target completion date"""
    if arrangement.target_completion_date is None:
        return None

    remaining = remaining_balance(arrangement, transactions)
    if remaining <= 0:
        return ZERO

    months = whole_months_between(now.date(), arrangement.target_completion_date)
    if months <= 0:
        # Target reached or passed: everything is due now
        return remaining
    return to_money(remaining / months)


def arrangement_status(
    arrangement: FlexibleArrangement,
    transactions: Iterable[Transaction],
    now: datetime,
) -> ArrangementStatus:
    transactions = list(transactions)
    paid = total_paid(arrangement, transactions)
    return ArrangementStatus(
        arrangement_id=arrangement.id,
        total_paid=paid,
        remaining_balance=to_money(abs(arrangement.original_amount)) - paid,
        paid_this_month=paid_in_month(arrangement, transactions, now),
        is_overdue=is_overdue(arrangement, transactions, now),
        progress=progress(arrangement, transactions),
        required_monthly_payment=required_monthly_payment(arrangement, transactions, now),
    )
