"""POST /v1/transactions/search and POST /v1/transfers/{transfer_id}/transactions - ledger listings"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id
from pennypath_engine.api.v1.schemas import (
    DayGroupSchema,
    DiagnosticSchema,
    LedgerEntrySchema,
    SnapshotRequest,
    TransactionSearchResponse,
    TransactionStatsSchema,
    TransferTransactionsResponse,
)
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import Diagnostics
from pennypath_engine.domain.exceptions import DomainException, RecordNotFoundError
from pennypath_engine.domain.ledger_queries import filter_transactions, group_by_day, summarize_transactions
from pennypath_engine.domain.models import DateRangeFilter, TransactionFilter, TransactionTypeFilter
from pennypath_engine.domain.transfers import transfer_transactions
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/transactions/search", response_model=TransactionSearchResponse)
def search_transactions(
    request_body: SnapshotRequest,
    request: Request,
    search: str = Query("", description="Matches description, account name or category name"),
    account_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    event_id: Optional[str] = Query(None),
    transaction_type: TransactionTypeFilter = Query(TransactionTypeFilter.ALL),
    date_range: DateRangeFilter = Query(DateRangeFilter.THIS_MONTH, description="Named period; ignored with all_time"),
    all_time: bool = Query(False, description="Ignore the date range"),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Filtered, newest-first listing of the snapshot's transactions.

    Returns:
        Matching entries, their day grouping and income/expense totals
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    diagnostics = Diagnostics()

    criteria = TransactionFilter(
        search_text=search,
        account_id=account_id,
        category_id=category_id,
        event_id=event_id,
        transaction_type=transaction_type,
        date_range=None if all_time else date_range,
    )

    try:
        snapshot = request_body.to_snapshot()
        LedgerIndex.build(snapshot, diagnostics)
        matched = filter_transactions(snapshot.transactions, criteria, now, snapshot.accounts, snapshot.categories)
        days = group_by_day(matched)
        stats = summarize_transactions(matched)

    except DomainException as e:
        logging.warning(f"Unprocessable snapshot: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_computation("transactions", diagnostics.items, duration)
    log_computation(request_id, "transactions", len(matched), len(diagnostics), duration * 1000)

    return TransactionSearchResponse(
        transactions=[LedgerEntrySchema.from_domain(t) for t in matched],
        days=[DayGroupSchema(date=day, transaction_ids=[t.id for t in entries]) for day, entries in days.items()],
        stats=TransactionStatsSchema.from_domain(stats),
        has_active_filters=criteria.has_active_filters,
        diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics.items],
    )


@router.post("/transfers/{transfer_id}/transactions", response_model=TransferTransactionsResponse)
def get_transfer_transactions(
    transfer_id: str,
    request_body: SnapshotRequest,
    request: Request,
):
    """Paired outflow and inflow that a transfer writes to the ledger"""
    start_time = time.time()
    request_id = get_request_id(request)
    diagnostics = Diagnostics()

    try:
        index = LedgerIndex.build(request_body.to_snapshot(), diagnostics)
        outflow, inflow = transfer_transactions(index.require_transfer(transfer_id))

    except RecordNotFoundError as e:
        logging.warning(f"Record not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except DomainException as e:
        logging.warning(f"Unprocessable snapshot: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_computation("transfer", diagnostics.items, duration)
    log_computation(request_id, "transfer", 2, len(diagnostics), duration * 1000)

    return TransferTransactionsResponse(
        transfer_id=transfer_id,
        outflow=LedgerEntrySchema.from_domain(outflow),
        inflow=LedgerEntrySchema.from_domain(inflow),
        diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics.items],
    )
