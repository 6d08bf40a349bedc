"""Account-level figures: loan progress, sign checks, totals, grouping, per-account summary"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from pennypath_engine.config import settings
from pennypath_engine.domain.budgets import current_month_income, current_month_spending
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics, note
from pennypath_engine.domain.forecast import next_bnpl_payment, upcoming_transactions
from pennypath_engine.domain.models import Account, AccountGroup, AccountGroupType, AccountSummary, Transaction
from pennypath_engine.utils.date_utils import whole_months_between
from pennypath_engine.utils.money import ZERO


def remaining_loan_months(account: Account, now: datetime) -> Optional[int]:
    """Months left on the loan term; None without a start date and term"""
    if account.loan_start_date is None or account.loan_term_months is None:
        return None
    elapsed = whole_months_between(account.loan_start_date, now.date())
    return max(0, account.loan_term_months - elapsed)


def loan_completion_percentage(account: Account, now: datetime) -> Optional[float]:
    """Elapsed share of the loan term, capped at 1.0"""
    if account.loan_start_date is None or not account.loan_term_months or account.loan_term_months <= 0:
        return None
    elapsed = whole_months_between(account.loan_start_date, now.date())
    return min(1.0, max(elapsed, 0) / account.loan_term_months)


def balance_sign_is_consistent(account: Account) -> bool:
    """Liability accounts should not carry a positive balance"""
    if account.type.can_have_positive_balance:
        return True
    return account.balance <= 0


def check_balance_signs(accounts: Iterable[Account], diagnostics: Optional[Diagnostics] = None) -> List[Account]:
    """Accounts whose balance sign contradicts their type; each one is noted"""
    inconsistent = [a for a in accounts if not balance_sign_is_consistent(a)]
    for account in inconsistent:
        note(
            diagnostics,
            DiagnosticKind.BALANCE_SIGN,
            account.id,
            f"{account.type.display_name} account {account.id} has positive balance {account.balance}",
        )
    return inconsistent


def net_worth(accounts: Iterable[Account]) -> Decimal:
    """Sum of signed balances across all accounts"""
    return sum((a.balance for a in accounts), ZERO)


def summarize_account(
    account: Account,
    transactions: Iterable[Transaction],
    now: datetime,
    diagnostics: Optional[Diagnostics] = None,
) -> AccountSummary:
    """Detail-screen figures for one account"""
    own = [t for t in transactions if t.account_id == account.id]
    posted = [t for t in own if t.is_posted]

    recent = sorted(posted, key=lambda t: t.date, reverse=True)[: settings.recent_transactions_limit]
    upcoming = upcoming_transactions(
        own,
        now,
        horizon_days=settings.forecast_horizon_days,
        limit=settings.upcoming_display_limit,
        diagnostics=diagnostics,
    )

    # Plans with something still scheduled
    outstanding_plans = {t.bnpl_plan_id for t in own if t.bnpl_plan_id is not None and t.is_scheduled}

    return AccountSummary(
        account_id=account.id,
        recent_transactions=tuple(recent),
        upcoming=tuple(upcoming),
        current_month_spending=current_month_spending(own, now),
        current_month_income=current_month_income(own, now),
        transaction_count=len(posted),
        outstanding_bnpl_plans=len(outstanding_plans),
        next_bnpl_payment=next_bnpl_payment(own, now, diagnostics),
    )


def total_assets(accounts: Iterable[Account]) -> Decimal:
    """Sum of positive balances"""
    return sum((a.balance for a in accounts if a.balance > 0), ZERO)


def total_liabilities(accounts: Iterable[Account]) -> Decimal:
    """Magnitude of all negative balances"""
    return sum((-a.balance for a in accounts if a.balance < 0), ZERO)


def group_accounts(accounts: Iterable[Account]) -> List[AccountGroup]:
    """
    Accounts bucketed by group in display order, highest balance first.

    Empty groups are left out.
    """
    accounts = list(accounts)
    groups = []
    for group_type in AccountGroupType:
        members = [a for a in accounts if a.type in group_type.account_types]
        if members:
            members.sort(key=lambda a: a.balance, reverse=True)
            groups.append(AccountGroup(type=group_type, accounts=tuple(members)))
    return groups
