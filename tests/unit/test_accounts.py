"""Unit tests for account-level figures"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from pennypath_engine.domain.accounts import (
    balance_sign_is_consistent,
    check_balance_signs,
    group_accounts,
    loan_completion_percentage,
    net_worth,
    remaining_loan_months,
    summarize_account,
    total_assets,
    total_liabilities,
)
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics
from pennypath_engine.domain.models import AccountGroupType, AccountType


def test_account_type_behaviour():
    assert AccountType.CREDIT.is_liability is True
    assert AccountType.FAMILY_FRIEND.can_have_positive_balance is True
    assert AccountType.BNPL.supports_scheduled_payments is True
    assert AccountType.DEBT_COLLECTION.supports_flexible_payments is True
    assert AccountType.PREPAID.is_prepaid_type is True
    assert AccountType.SAVINGS.affects_credit_score is False
    assert AccountType.BNPL.display_name == "Buy Now Pay Later"


def test_credit_card_figures(make_account):
    card = make_account("acc-card", AccountType.CREDIT, "-250.00", credit_limit=Decimal("1000.00"))

    assert card.available_credit == Decimal("750.00")
    assert card.credit_utilization == pytest.approx(0.25)
    assert make_account().available_credit is None


def test_loan_figures(make_account, now):
    loan = make_account(
        "acc-loan",
        AccountType.LOAN,
        "-7500.00",
        original_loan_amount=Decimal("10000.00"),
        loan_term_months=24,
        loan_start_date=date(2024, 6, 16),
    )

    assert loan.loan_progress == pytest.approx(0.25)
    assert remaining_loan_months(loan, now) == 12
    assert loan_completion_percentage(loan, now) == pytest.approx(0.5)


def test_loan_figures_without_term(make_account, now):
    loan = make_account("acc-loan", AccountType.LOAN, "-100.00")

    assert remaining_loan_months(loan, now) is None
    assert loan_completion_percentage(loan, now) is None


def test_loan_past_its_term(make_account, now):
    loan = make_account("acc-loan", AccountType.LOAN, "-1.00", loan_term_months=6, loan_start_date=date(2023, 1, 1))

    assert remaining_loan_months(loan, now) == 0
    assert loan_completion_percentage(loan, now) == 1.0


def test_balance_signs(make_account):
    diagnostics = Diagnostics()
    accounts = [
        make_account("acc-current", balance="-20.00"),  # overdrawn is fine
        make_account("acc-card", AccountType.CREDIT, "50.00"),
        make_account("acc-family", AccountType.FAMILY_FRIEND, "300.00"),
    ]

    assert balance_sign_is_consistent(accounts[0]) is True
    assert [a.id for a in check_balance_signs(accounts, diagnostics)] == ["acc-card"]
    assert diagnostics.count(DiagnosticKind.BALANCE_SIGN) == 1


def test_net_worth(make_account):
    accounts = [
        make_account("acc-current", balance="1500.00"),
        make_account("acc-card", AccountType.CREDIT, "-400.00"),
        make_account("acc-loan", AccountType.LOAN, "-2000.50"),
    ]

    assert net_worth(accounts) == Decimal("-900.50")
    assert net_worth([]) == Decimal("0.00")


def test_summarize_account(make_account, make_transaction, now):
    account = make_account(balance="900.00")
    posted = [make_transaction("-5.00", now - timedelta(days=d)) for d in range(12)]
    transactions = posted + [
        make_transaction("2000.00", datetime(2025, 6, 1, 9, 0)),
        make_transaction("-30.00", now + timedelta(days=2), is_scheduled=True, txn_id="bill"),
        make_transaction("-62.49", now + timedelta(days=50), is_scheduled=True, bnpl_plan_id="plan-1", txn_id="bnpl"),
        make_transaction("-1.00", now, account_id="acc-other"),
    ]

    summary = summarize_account(account, transactions, now)

    assert len(summary.recent_transactions) == 10
    assert summary.recent_transactions[0].date == now
    assert summary.transaction_count == 13
    assert [o.transaction_id for o in summary.upcoming] == ["bill"]
    assert summary.current_month_income == Decimal("2000.00")
    assert summary.current_month_spending == Decimal("60.00")
    assert summary.outstanding_bnpl_plans == 1
    assert summary.next_bnpl_payment.transaction_id == "bnpl"


def test_group_accounts_in_display_order(make_account):
    accounts = [
        make_account("acc-card", AccountType.CREDIT, "-250.00"),
        make_account("acc-savings", AccountType.SAVINGS, "5000.00"),
        make_account("acc-klarna", AccountType.BNPL, "-120.00"),
        make_account("acc-current", AccountType.CURRENT, "850.00"),
        make_account("acc-loan", AccountType.LOAN, "-9000.00"),
        make_account("acc-mum", AccountType.FAMILY_FRIEND, "-300.00"),
    ]

    groups = group_accounts(accounts)

    assert [g.type for g in groups] == [AccountGroupType.TRADITIONAL, AccountGroupType.CREDIT, AccountGroupType.MODERN_CREDIT]
    assert [a.id for a in groups[0].accounts] == ["acc-savings", "acc-current"]
    assert [a.id for a in groups[1].accounts] == ["acc-card", "acc-loan"]
    assert [a.id for a in groups[2].accounts] == ["acc-klarna", "acc-mum"]
    assert groups[1].total_balance == Decimal("-9250.00")
    assert AccountGroupType.MODERN_CREDIT.display_name == "Modern Credit"


def test_every_account_type_has_a_group():
    grouped = [t for g in AccountGroupType for t in g.account_types]

    assert sorted(grouped) == sorted(AccountType)


def test_assets_and_liabilities(make_account):
    accounts = [
        make_account("acc-current", balance="850.00"),
        make_account("acc-savings", AccountType.SAVINGS, "150.00"),
        make_account("acc-card", AccountType.CREDIT, "-250.00"),
        make_account("acc-empty", AccountType.PREPAID, "0.00"),
    ]

    assert total_assets(accounts) == Decimal("1000.00")
    assert total_liabilities(accounts) == Decimal("250.00")
    assert total_assets(accounts) - total_liabilities(accounts) == net_worth(accounts)
    assert total_assets([]) == Decimal("0.00")
