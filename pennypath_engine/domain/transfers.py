"""Transfers between own accounts, expressed as paired ledger entries"""

from typing import Iterable, List, Optional, Tuple

from pennypath_engine.domain.diagnostics import DiagnosticKind, Diagnostics, note
from pennypath_engine.domain.exceptions import InvalidTransferError
from pennypath_engine.domain.models import Transaction, Transfer


def transfer_transactions(transfer: Transfer) -> Tuple[Transaction, Transaction]:
    """
    Outflow on the source account and matching inflow on the destination.

    Both legs are posted, uncategorised and dated with the transfer, so they
    net to zero across the two accounts.

    Raises:
        InvalidTransferError: non-positive amount, or source and destination are the same account
    """
    if transfer.amount <= 0:
        raise InvalidTransferError(f"Transfer {transfer.id} has non-positive amount {transfer.amount}")
    if transfer.from_account_id == transfer.to_account_id:
        raise InvalidTransferError(f"Transfer {transfer.id} moves money within account {transfer.from_account_id}")

    outflow = Transaction(
        id=f"{transfer.id}-from",
        user_id=transfer.user_id,
        account_id=transfer.from_account_id,
        amount=-transfer.amount,
        description=f"Transfer to {transfer.description}",
        date=transfer.date,
    )
    inflow = Transaction(
        id=f"{transfer.id}-to",
        user_id=transfer.user_id,
        account_id=transfer.to_account_id,
        amount=transfer.amount,
        description="Transfer from account",
        date=transfer.date,
    )
    return outflow, inflow


def generate_transactions(transfers: Iterable[Transfer], diagnostics: Optional[Diagnostics] = None) -> List[Transaction]:
    """Ledger entries for every usable transfer; unusable ones are noted and skipped"""
    legs: List[Transaction] = []
    for transfer in transfers:
        try:
            legs.extend(transfer_transactions(transfer))
        except InvalidTransferError as e:
            note(diagnostics, DiagnosticKind.INVALID_NUMERIC, transfer.id, str(e))
    return legs
