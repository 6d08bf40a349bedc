"""Dashboard orchestration - evaluates every component over one snapshot"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from pennypath_engine.config import Settings, settings
from pennypath_engine.domain.accounts import check_balance_signs, net_worth
from pennypath_engine.domain.arrangements import arrangement_status
from pennypath_engine.domain.budgets import calculate_budget_progress, current_month_spending
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics
from pennypath_engine.domain.exceptions import RecordNotFoundError
from pennypath_engine.domain.forecast import forecast_balance, upcoming_transactions
from pennypath_engine.domain.installments import plan_status
from pennypath_engine.domain.models import (
    Account,
    BNPLPlan,
    Category,
    DashboardSummary,
    Event,
    FlexibleArrangement,
    LedgerSnapshot,
    Transaction,
    Transfer,
)
from pennypath_engine.domain.transfers import generate_transactions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerIndex:
    """Id lookups built once per computation instead of repeated scans"""

    accounts: Dict[str, Account]
    categories: Dict[str, Category]
    plans: Dict[str, BNPLPlan]
    arrangements: Dict[str, FlexibleArrangement]
    transactions_by_account: Dict[str, List[Transaction]]
    transactions_by_plan: Dict[str, List[Transaction]]
    transfers: Dict[str, Transfer]
    events: Dict[str, Event]

    @classmethod
    def build(cls, snapshot: LedgerSnapshot, diagnostics: Optional[Diagnostics] = None) -> "LedgerIndex":
        accounts = {a.id: a for a in snapshot.accounts}
        categories = {c.id: c for c in snapshot.categories}
        plans = {p.id: p for p in snapshot.bnpl_plans}

        by_account: Dict[str, List[Transaction]] = defaultdict(list)
        by_plan: Dict[str, List[Transaction]] = defaultdict(list)
        # Transfer legs move balances like any other entry
        legs = generate_transactions(snapshot.transfers, diagnostics)
        for txn in (*snapshot.transactions, *legs):
            by_account[txn.account_id].append(txn)
            if txn.bnpl_plan_id is not None:
                by_plan[txn.bnpl_plan_id].append(txn)

            if diagnostics is None:
                continue
            if txn.account_id not in accounts:
                diagnostics.record(
                    DiagnosticKind.DANGLING_REFERENCE, txn.id, f"Transaction {txn.id} references missing account {txn.account_id}"
                )
            if txn.category_id is not None and txn.category_id not in categories:
                diagnostics.record(
                    DiagnosticKind.DANGLING_REFERENCE, txn.id, f"Transaction {txn.id} references missing category {txn.category_id}"
                )
            if txn.bnpl_plan_id is not None and txn.bnpl_plan_id not in plans:
                diagnostics.record(
                    DiagnosticKind.DANGLING_REFERENCE, txn.id, f"Transaction {txn.id} references missing BNPL plan {txn.bnpl_plan_id}"
                )

        return cls(
            accounts=accounts,
            categories=categories,
            plans=plans,
            arrangements={f.id: f for f in snapshot.flexible_arrangements},
            transactions_by_account=dict(by_account),
            transactions_by_plan=dict(by_plan),
            transfers={t.id: t for t in snapshot.transfers},
            events={e.id: e for e in snapshot.events},
        )

    def require_account(self, account_id: str) -> Account:
        if account_id not in self.accounts:
            raise RecordNotFoundError("Account", account_id)
        return self.accounts[account_id]

    def require_plan(self, plan_id: str) -> BNPLPlan:
        if plan_id not in self.plans:
            raise RecordNotFoundError("BNPL plan", plan_id)
        return self.plans[plan_id]

    def require_arrangement(self, arrangement_id: str) -> FlexibleArrangement:
        if arrangement_id not in self.arrangements:
            raise RecordNotFoundError("Arrangement", arrangement_id)
        return self.arrangements[arrangement_id]

    def require_transfer(self, transfer_id: str) -> Transfer:
        if transfer_id not in self.transfers:
            raise RecordNotFoundError("Transfer", transfer_id)
        return self.transfers[transfer_id]

    def account_transactions(self, account_id: str) -> List[Transaction]:
        return self.transactions_by_account.get(account_id, [])

    def plan_transactions(self, plan: BNPLPlan) -> List[Transaction]:
        """Transactions on the plan's account plus those linked to it from elsewhere"""
        relevant = list(self.account_transactions(plan.account_id))
        seen = {id(t) for t in relevant}
        relevant.extend(t for t in self.transactions_by_plan.get(plan.id, []) if id(t) not in seen)
        return relevant


def build_dashboard(
    snapshot: LedgerSnapshot,
    now: datetime,
    config: Optional[Settings] = None,
) -> DashboardSummary:
    """
    Evaluate every engine component over ``snapshot`` at ``now``.

    Flow:
    1. Index the snapshot and note dangling references / sign violations
    2. Net worth and this month's posted spending
    3. Upcoming obligations (capped for display)
    4. Budget progress for the month containing ``now``
    5. Balance forecast per account
    6. BNPL plan statuses and flexible arrangement statuses
    """
    config = config or settings
    diagnostics = Diagnostics()

    index = LedgerIndex.build(snapshot, diagnostics)
    check_balance_signs(snapshot.accounts, diagnostics)

    # Transactions whose account is unknown stay out of account-scoped figures
    resolvable = [t for t in snapshot.transactions if t.account_id in index.accounts]

    upcoming = upcoming_transactions(
        resolvable,
        now,
        horizon_days=config.forecast_horizon_days,
        limit=config.upcoming_display_limit,
        diagnostics=diagnostics,
    )

    budgets = calculate_budget_progress(
        snapshot.budgets,
        resolvable,
        snapshot.categories,
        now.month,
        now.year,
        duplicate_policy=config.budget_duplicate_policy,
        diagnostics=diagnostics,
    )

    forecasts = [
        forecast_balance(
            account,
            index.account_transactions(account.id),
            now,
            horizon_days=config.forecast_horizon_days,
            lookback_days=config.forecast_lookback_days,
            diagnostics=diagnostics,
        )
        for account in snapshot.accounts
    ]

    bnpl_statuses = [
        plan_status(plan, index.plan_transactions(plan), now, diagnostics)
        for plan in snapshot.bnpl_plans
    ]

    arrangement_statuses = [
        arrangement_status(arrangement, index.account_transactions(arrangement.account_id), now)
        for arrangement in snapshot.flexible_arrangements
    ]

    if diagnostics.is_degraded:
        logger.info("Dashboard built with degraded inputs", extra={"diagnostic_count": len(diagnostics)})

    return DashboardSummary(
        net_worth=net_worth(snapshot.accounts),
        current_month_spending=current_month_spending(resolvable, now),
        upcoming=tuple(upcoming),
        budget_progress=tuple(budgets),
        forecasts=tuple(forecasts),
        bnpl_statuses=tuple(bnpl_statuses),
        arrangement_statuses=tuple(arrangement_statuses),
        diagnostics=diagnostics.items,
    )
