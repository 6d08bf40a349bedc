"""POST /v1/forecast/{account_id} and POST /v1/upcoming - balance projection endpoints"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id, get_settings
from pennypath_engine.api.v1.schemas import (
    DiagnosticSchema,
    ForecastResponse,
    OccurrenceSchema,
    SnapshotRequest,
    UpcomingResponse,
)
from pennypath_engine.config import Settings, settings
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import Diagnostics
from pennypath_engine.domain.exceptions import DomainException, RecordNotFoundError
from pennypath_engine.domain.forecast import forecast_balance, upcoming_transactions
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/forecast/{account_id}", response_model=ForecastResponse)
def get_forecast(
    account_id: str,
    request_body: SnapshotRequest,
    request: Request,
    horizon_days: Optional[int] = Query(
        None, le=settings.max_forecast_window_days, description="Days to project; defaults to settings"
    ),
    lookback_days: Optional[int] = Query(
        None, le=settings.max_forecast_window_days, description="Days to reconstruct; defaults to settings"
    ),
    config: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Daily balance series for one account of the snapshot.

    Returns:
        lookback + horizon + 1 points, oldest first
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    diagnostics = Diagnostics()

    try:
        index = LedgerIndex.build(request_body.to_snapshot(), diagnostics)
        account = index.require_account(account_id)
        forecast = forecast_balance(
            account,
            index.account_transactions(account_id),
            now,
            horizon_days=config.forecast_horizon_days if horizon_days is None else horizon_days,
            lookback_days=config.forecast_lookback_days if lookback_days is None else lookback_days,
            diagnostics=diagnostics,
        )

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
    record_computation("forecast", diagnostics.items, duration)
    log_computation(request_id, "forecast", len(forecast.points), len(diagnostics), duration * 1000)

    return ForecastResponse.from_domain(forecast, list(diagnostics.items))


@router.post("/upcoming", response_model=UpcomingResponse)
def get_upcoming(
    request_body: SnapshotRequest,
    request: Request,
    limit: Optional[int] = Query(None, ge=0, description="Maximum entries; defaults to the display cap"),
    config: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Scheduled, unpaid obligations due within the forecast horizon, soonest first"""
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    diagnostics = Diagnostics()

    try:
        index = LedgerIndex.build(request_body.to_snapshot(), diagnostics)
        resolvable = [t for account_id in index.accounts for t in index.account_transactions(account_id)]
        upcoming = upcoming_transactions(
            resolvable,
            now,
            horizon_days=config.forecast_horizon_days,
            limit=config.upcoming_display_limit if limit is None else limit,
            diagnostics=diagnostics,
        )

    except DomainException as e:
        logging.warning(f"Unprocessable snapshot: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_computation("upcoming", diagnostics.items, duration)
    log_computation(request_id, "upcoming", len(upcoming), len(diagnostics), duration * 1000)

    return UpcomingResponse(
        upcoming=[OccurrenceSchema.from_domain(o) for o in upcoming],
        diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics.items],
    )
