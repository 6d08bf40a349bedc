"""POST /v1/dashboard - Every engine figure for one snapshot"""

import logging
import time
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id, get_settings
from pennypath_engine.api.v1.schemas import DashboardResponse, SnapshotRequest
from pennypath_engine.config import Settings
from pennypath_engine.domain.dashboard import build_dashboard
from pennypath_engine.domain.exceptions import DomainException
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    request_body: SnapshotRequest,
    request: Request,
    config: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Build the dashboard summary.

    Flow:
    1. Read the clock once when the request carries no reference time
    2. Convert the snapshot into immutable domain records
    3. Evaluate every component over it
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()

    try:
        summary = build_dashboard(request_body.to_snapshot(), now, config=config)

    except DomainException as e:
        logging.warning(f"Unprocessable snapshot: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_computation("dashboard", summary.diagnostics, duration)
    log_computation(request_id, "dashboard", len(request_body.accounts), len(summary.diagnostics), duration * 1000)

    return DashboardResponse.from_domain(summary)
