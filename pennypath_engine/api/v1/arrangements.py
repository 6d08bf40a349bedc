"""POST /v1/arrangements/{arrangement_id}/status - Flexible arrangement tracking"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id, get_settings
from pennypath_engine.api.v1.schemas import ArrangementStatusResponse, SnapshotRequest
from pennypath_engine.config import Settings
from pennypath_engine.domain.arrangements import arrangement_status, suggested_overpayment
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import Diagnostics
from pennypath_engine.domain.exceptions import DomainException, RecordNotFoundError
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/arrangements/{arrangement_id}/status", response_model=ArrangementStatusResponse)
def get_arrangement_status(
    arrangement_id: str,
    request_body: SnapshotRequest,
    request: Request,
    available_amount: Optional[Decimal] = Query(None, description="Cash available this month, for an overpayment hint"),
    config: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Paid, remaining and overdue figures for one arrangement"""
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    diagnostics = Diagnostics()

    try:
        index = LedgerIndex.build(request_body.to_snapshot(), diagnostics)
        arrangement = index.require_arrangement(arrangement_id)
        status = arrangement_status(arrangement, index.account_transactions(arrangement.account_id), now)
        suggestion = None
        if available_amount is not None:
            suggestion = suggested_overpayment(arrangement, available_amount, threshold=config.overpayment_threshold)

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
    record_computation("arrangement", diagnostics.items, duration)
    log_computation(request_id, "arrangement", 1, len(diagnostics), duration * 1000)

    return ArrangementStatusResponse.from_domain(status, suggestion, list(diagnostics.items))
