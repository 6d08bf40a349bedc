"""POST /v1/plans/{plan_id}/schedule - BNPL installment schedule and delinquency"""

import logging
import time
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id
from pennypath_engine.api.v1.schemas import PlanScheduleResponse, SnapshotRequest
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import Diagnostics
from pennypath_engine.domain.exceptions import DomainException, RecordNotFoundError
from pennypath_engine.domain.installments import plan_status
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/plans/{plan_id}/schedule", response_model=PlanScheduleResponse)
def get_plan_schedule(
    plan_id: str,
    request_body: SnapshotRequest,
    request: Request,
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Retrieve a BNPL plan's installment schedule with payment progress.

    Returns:
        Installments (due date + amount), matched payments, overdue flag
        and the next installment still owed
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    diagnostics = Diagnostics()

    try:
        index = LedgerIndex.build(request_body.to_snapshot(), diagnostics)
        plan = index.require_plan(plan_id)
        status = plan_status(plan, index.plan_transactions(plan), now, diagnostics)

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
    record_computation("bnpl", diagnostics.items, duration)
    log_computation(request_id, "bnpl", len(status.installments), len(diagnostics), duration * 1000)

    return PlanScheduleResponse.from_domain(status, list(diagnostics.items))
