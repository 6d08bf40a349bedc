"""POST /v1/accounts/{account_id}/summary and POST /v1/accounts/groups - account figures"""

import logging
import time
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id
from pennypath_engine.api.v1.schemas import (
    AccountGroupSchema,
    AccountGroupsResponse,
    AccountSummaryResponse,
    DiagnosticSchema,
    SnapshotRequest,
)
from pennypath_engine.domain.accounts import (
    check_balance_signs,
    group_accounts,
    net_worth,
    summarize_account,
    total_assets,
    total_liabilities,
)
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import Diagnostics
from pennypath_engine.domain.exceptions import DomainException, RecordNotFoundError
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/accounts/{account_id}/summary", response_model=AccountSummaryResponse)
def get_account_summary(
    account_id: str,
    request_body: SnapshotRequest,
    request: Request,
    clock: Callable[[], datetime] = Depends(get_clock),
):
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    diagnostics = Diagnostics()

    try:
        index = LedgerIndex.build(request_body.to_snapshot(), diagnostics)
        account = index.require_account(account_id)
        check_balance_signs([account], diagnostics)
        summary = summarize_account(account, index.account_transactions(account_id), now, diagnostics)

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
    record_computation("account", diagnostics.items, duration)
    log_computation(request_id, "account", summary.transaction_count, len(diagnostics), duration * 1000)

    return AccountSummaryResponse.from_domain(summary, list(diagnostics.items))


@router.post("/accounts/groups", response_model=AccountGroupsResponse)
def get_account_groups(request_body: SnapshotRequest, request: Request):
    """Accounts grouped for display, with asset and liability totals"""
    start_time = time.time()
    request_id = get_request_id(request)
    diagnostics = Diagnostics()

    try:
        accounts = request_body.to_snapshot().accounts
        check_balance_signs(accounts, diagnostics)
        groups = group_accounts(accounts)

    except DomainException as e:
        logging.warning(f"Unprocessable snapshot: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_computation("account_groups", diagnostics.items, duration)
    log_computation(request_id, "account_groups", len(groups), len(diagnostics), duration * 1000)

    return AccountGroupsResponse(
        groups=[AccountGroupSchema.from_domain(g) for g in groups],
        total_balance=net_worth(accounts),
        total_assets=total_assets(accounts),
        total_liabilities=total_liabilities(accounts),
        diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics.items],
    )
