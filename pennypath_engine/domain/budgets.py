"""Budget aggregation - per-category spend against monthly limits"""

from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from pennypath_engine.config import settings
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics, note
from pennypath_engine.domain.models import Budget, BudgetProgress, Category, Transaction
from pennypath_engine.utils.date_utils import in_month
from pennypath_engine.utils.money import ZERO, to_money


def calculate_budget_progress(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    month: int,
    year: int,
    duplicate_policy: Optional[str] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> List[BudgetProgress]:
    """
    Spend-vs-limit for every budget of ``(month, year)``.

    Requirements:
    - Spent = sum of |amount| over posted, negative transactions in the
      budget's category dated inside the month; scheduled ones never count
    - Budgets pointing at a missing category are skipped
    - A non-positive limit yields 0% progress instead of dividing by zero
    - Duplicate budgets for one category/month collapse per ``duplicate_policy``:
      "latest" keeps the most recently created, "sum" adds the limits

    Returns entries in input order of the budgets that survive.

    Example:
        limit 400.00; spent 120 + 80 + 50 → spent 250.00, progress 0.625,
        remaining 150.00, not over budget
    """
    if duplicate_policy is None:
        duplicate_policy = settings.budget_duplicate_policy

    if not 1 <= month <= 12:
        note(diagnostics, DiagnosticKind.INVALID_NUMERIC, None, f"Month {month} is outside 1-12; no budgets evaluated")
        return []

    categories_by_id: Dict[str, Category] = {c.id: c for c in categories}
    spent_by_category = spending_by_category(transactions, month, year)

    in_period = [b for b in budgets if b.month == month and b.year == year]
    progress: List[BudgetProgress] = []
    for budget in collapse_duplicates(in_period, duplicate_policy, diagnostics):
        category = categories_by_id.get(budget.category_id)
        if category is None:
            note(
                diagnostics,
                DiagnosticKind.DANGLING_REFERENCE,
                budget.id,
                f"Budget {budget.id} references missing category {budget.category_id}",
            )
            continue

        if budget.amount <= 0:
            note(diagnostics, DiagnosticKind.INVALID_NUMERIC, budget.id, f"Budget {budget.id} has non-positive limit {budget.amount}")

        progress.append(
            BudgetProgress(
                budget_id=budget.id,
                category_id=category.id,
                category_name=category.name,
                category_color=category.color,
                category_icon=category.icon,
                budget_amount=budget.amount,
                spent_amount=to_money(spent_by_category.get(category.id, ZERO)),
            )
        )

    return progress


def spending_by_category(transactions: Iterable[Transaction], month: int, year: int) -> Dict[str, Decimal]:
    """Posted outflows per category for one calendar month (absolute values)"""
    spent: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if (
            txn.is_posted
            and txn.amount < 0
            and txn.category_id is not None
            and in_month(txn.date, year, month)
        ):
            spent[txn.category_id] += abs(txn.amount)
    return dict(spent)


def collapse_duplicates(
    budgets: List[Budget],
    policy: str,
    diagnostics: Optional[Diagnostics] = None,
) -> List[Budget]:
    """One budget per (category, month, year), keeping input order of survivors"""
    groups: Dict[tuple, List[int]] = defaultdict(list)
    for position, budget in enumerate(budgets):
        groups[(budget.category_id, budget.month, budget.year)].append(position)

    survivors: Dict[int, Budget] = {}
    for (category_id, month, year), positions in groups.items():
        if len(positions) == 1:
            survivors[positions[0]] = budgets[positions[0]]
            continue

        note(
            diagnostics,
            DiagnosticKind.DUPLICATE_BUDGET,
            category_id,
            f"{len(positions)} budgets for category {category_id} in {year}-{month:02d}; applying '{policy}'",
        )
        if policy == "sum":
            first = positions[0]
            total = sum((budgets[p].amount for p in positions), ZERO)
            survivors[first] = replace(budgets[first], amount=total)
        else:
            # Most recently created wins; later input breaks ties
            winner = max(positions, key=lambda p: (budgets[p].created_at or datetime.min, p))
            survivors[winner] = budgets[winner]

    return [survivors[p] for p in sorted(survivors)]


def current_month_spending(transactions: Iterable[Transaction], now: datetime) -> Decimal:
    """Posted outflows (absolute) in the month containing ``now``"""
    total = sum(
        (abs(t.amount) for t in transactions if t.is_posted and t.amount < 0 and in_month(t.date, now.year, now.month)),
        ZERO,
    )
    return to_money(total)


def current_month_income(transactions: Iterable[Transaction], now: datetime) -> Decimal:
    """Posted inflows in the month containing ``now``"""
    total = sum(
        (t.amount for t in transactions if t.is_posted and t.amount > 0 and in_month(t.date, now.year, now.month)),
        ZERO,
    )
    return to_money(total)
