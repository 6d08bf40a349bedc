"""Unit tests for transfers between own accounts"""

import pytest
from datetime import timedelta
from decimal import Decimal
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics
from pennypath_engine.domain.exceptions import InvalidTransferError
from pennypath_engine.domain.forecast import forecast_balance
from pennypath_engine.domain.models import AccountType, LedgerSnapshot, TransferType
from pennypath_engine.domain.transfers import generate_transactions, transfer_transactions


def test_transfer_produces_paired_entries(make_transfer, now):
    transfer = make_transfer("150.00", now, transfer_type=TransferType.SAVINGS)

    outflow, inflow = transfer_transactions(transfer)

    assert (outflow.id, outflow.account_id, outflow.amount) == ("tr-1-from", "acc-current", Decimal("-150.00"))
    assert (inflow.id, inflow.account_id, inflow.amount) == ("tr-1-to", "acc-savings", Decimal("150.00"))
    assert outflow.description == "Transfer to Savings"
    assert outflow.date == inflow.date == now
    assert outflow.amount + inflow.amount == 0
    assert outflow.category_id is None and inflow.category_id is None
    assert outflow.is_posted and inflow.is_posted


@pytest.mark.parametrize("amount", ["0.00", "-20.00"])
def test_non_positive_transfer_is_rejected(make_transfer, now, amount):
    with pytest.raises(InvalidTransferError):
        transfer_transactions(make_transfer(amount, now))


def test_transfer_within_one_account_is_rejected(make_transfer, now):
    with pytest.raises(InvalidTransferError):
        transfer_transactions(make_transfer("10.00", now, to_account="acc-current"))


def test_generate_transactions_skips_unusable_transfers(make_transfer, now):
    diagnostics = Diagnostics()
    transfers = [
        make_transfer("40.00", now, transfer_id="tr-ok"),
        make_transfer("-5.00", now, transfer_id="tr-bad"),
    ]

    legs = generate_transactions(transfers, diagnostics)

    assert [t.id for t in legs] == ["tr-ok-from", "tr-ok-to"]
    assert diagnostics.count(DiagnosticKind.INVALID_NUMERIC) == 1
    assert diagnostics.items[0].record_id == "tr-bad"


def test_transfer_legs_are_indexed_per_account(make_account, make_transfer, now):
    snapshot = LedgerSnapshot(
        accounts=(make_account("acc-current", balance="900.00"), make_account("acc-savings", AccountType.SAVINGS, "100.00")),
        transfers=(make_transfer("100.00", now - timedelta(days=1)),),
    )

    index = LedgerIndex.build(snapshot)

    assert [t.amount for t in index.account_transactions("acc-current")] == [Decimal("-100.00")]
    assert [t.amount for t in index.account_transactions("acc-savings")] == [Decimal("100.00")]
    assert index.require_transfer("tr-1").amount == Decimal("100.00")


def test_balance_history_undoes_transfers(make_account, make_transfer, now):
    savings = make_account("acc-savings", AccountType.SAVINGS, "100.00")
    snapshot = LedgerSnapshot(
        accounts=(make_account("acc-current", balance="900.00"), savings),
        transfers=(make_transfer("100.00", now - timedelta(days=1)),),
    )
    index = LedgerIndex.build(snapshot)

    forecast = forecast_balance(savings, index.account_transactions("acc-savings"), now, horizon_days=0, lookback_days=2)

    assert [p.balance for p in forecast.points] == [Decimal("0.00"), Decimal("100.00"), Decimal("100.00")]


def test_transfer_to_missing_account_is_dangling(make_account, make_transfer, now):
    diagnostics = Diagnostics()
    snapshot = LedgerSnapshot(accounts=(make_account(),), transfers=(make_transfer("10.00", now),))

    LedgerIndex.build(snapshot, diagnostics)

    assert diagnostics.count(DiagnosticKind.DANGLING_REFERENCE) == 1
    assert diagnostics.items[0].record_id == "tr-1-to"
