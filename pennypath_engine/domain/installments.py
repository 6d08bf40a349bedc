"""Installment schedules and delinquency checks for BNPL plans"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics, note
from pennypath_engine.domain.exceptions import CalendarArithmeticError, InvalidPlanError
from pennypath_engine.domain.models import BNPLPlan, BNPLPlanStatus, Installment, Transaction
from pennypath_engine.utils.date_utils import add_calendar_units
from pennypath_engine.utils.money import ZERO, to_money


def _validate(plan: BNPLPlan) -> None:
    if plan.number_of_installments <= 0:
        raise InvalidPlanError(f"Plan {plan.id} has {plan.number_of_installments} installments")


def _due_date(plan: BNPLPlan, index: int, diagnostics: Optional[Diagnostics]) -> date:
    """start_date advanced by ``index`` frequency steps, computed from the start to avoid month-end drift"""
    unit, count = plan.frequency.step
    try:
        return add_calendar_units(plan.start_date, unit, index * count)
    except CalendarArithmeticError as e:
        note(diagnostics, DiagnosticKind.CALENDAR_FALLBACK, plan.id, f"{e}; using start date")
        return plan.start_date


def generate_payment_schedule(plan: BNPLPlan, diagnostics: Optional[Diagnostics] = None) -> List[date]:
    """
    Due dates for every installment of ``plan``.

    The k-th installment (0-indexed) is due ``k`` frequency steps after
    ``start_date``: biweekly 2 weeks, monthly 1 calendar month, and so on.

    Example:
        biweekly, 4 installments, start D → [D, D+2w, D+4w, D+6w]
    """
    try:
        _validate(plan)
    except InvalidPlanError as e:
        note(diagnostics, DiagnosticKind.INVALID_NUMERIC, plan.id, str(e))
        return []

    return [_due_date(plan, i, diagnostics) for i in range(plan.number_of_installments)]


def final_payment_date(plan: BNPLPlan, diagnostics: Optional[Diagnostics] = None) -> Optional[date]:
    """Start date advanced by (installments - 1) steps; None for an unusable plan"""
    if plan.number_of_installments <= 0:
        return None
    return _due_date(plan, plan.number_of_installments - 1, diagnostics)


def installment_amounts(plan: BNPLPlan, diagnostics: Optional[Diagnostics] = None) -> List[Decimal]:
    """
    Split ``total_amount`` into installments.

    Requirements:
    - Every installment but the last is total / n rounded to the penny
    - Last installment absorbs the rounding difference so the sum is exact

    Example:
        249.95 over 4 → [62.49, 62.49, 62.49, 62.48]
        400.03 over 4 → [100.01, 100.01, 100.01, 100.00]
    """
    try:
        _validate(plan)
    except InvalidPlanError as e:
        note(diagnostics, DiagnosticKind.INVALID_NUMERIC, plan.id, str(e))
        return []

    total = to_money(plan.total_amount)
    if total <= 0:
        note(diagnostics, DiagnosticKind.INVALID_NUMERIC, plan.id, f"Plan {plan.id} has non-positive total {total}")
        return []

    count = plan.number_of_installments
    regular = plan.installment_amount

    # Last installment absorbs remainder to ensure exact total
    last = total - regular * (count - 1)
    return [regular] * (count - 1) + [last]


def generate_installment_plan(plan: BNPLPlan, diagnostics: Optional[Diagnostics] = None) -> List[Installment]:
    """Installments with due dates and amounts; empty for an unusable plan"""
    amounts = installment_amounts(plan, diagnostics)
    if not amounts:
        return []

    dates = generate_payment_schedule(plan, diagnostics)
    return [
        Installment(number=i + 1, due_date=due_date, amount=amount)
        for i, (due_date, amount) in enumerate(zip(dates, amounts))
    ]


def count_matching_payments(plan: BNPLPlan, transactions: Iterable[Transaction]) -> int:
    """
    Posted payments that look like installments of ``plan``.

    A payment matches when its absolute amount equals an installment amount
    and it is linked to the plan, or is unlinked but posted to the plan's
    account. Payments linked to another plan never match.
    """
    amounts = set(installment_amounts(plan))
    if not amounts:
        return 0

    matched = 0
    for txn in transactions:
        if not txn.is_posted:
            continue
        if txn.bnpl_plan_id is not None:
            linked = txn.bnpl_plan_id == plan.id
        else:
            linked = txn.account_id == plan.account_id
        if linked and to_money(abs(txn.amount)) in amounts:
            matched += 1
    return matched


def has_overdue_payments(
    plan: BNPLPlan,
    transactions: Iterable[Transaction],
    now: datetime,
    diagnostics: Optional[Diagnostics] = None,
) -> bool:
    """True when fewer installments were paid than have fallen due by today"""
    if plan.is_completed:
        return False
    today = now.date()
    due_so_far = sum(1 for d in generate_payment_schedule(plan, diagnostics) if d <= today)
    return count_matching_payments(plan, transactions) < due_so_far


def plan_status(
    plan: BNPLPlan,
    transactions: Iterable[Transaction],
    now: datetime,
    diagnostics: Optional[Diagnostics] = None,
) -> BNPLPlanStatus:
    """Schedule, payment progress and delinquency for one plan"""
    transactions = list(transactions)
    installments = generate_installment_plan(plan, diagnostics)
    today = now.date()

    paid = count_matching_payments(plan, transactions)
    due = sum(1 for inst in installments if inst.due_date <= today)

    if plan.is_completed:
        settled = len(installments)
    else:
        settled = min(paid, len(installments))
    remaining = sum((inst.amount for inst in installments[settled:]), ZERO)

    return BNPLPlanStatus(
        plan_id=plan.id,
        installments=tuple(installments),
        payments_made=paid,
        payments_due=due,
        has_overdue_payments=not plan.is_completed and paid < due,
        next_installment=installments[settled] if settled < len(installments) else None,
        remaining_amount=remaining,
        final_payment_date=installments[-1].due_date if installments else final_payment_date(plan),
    )
