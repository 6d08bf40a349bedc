"""POST /v1/budgets/progress - Monthly budget progress"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id, get_settings
from pennypath_engine.api.v1.schemas import (
    BudgetProgressResponse,
    BudgetProgressSchema,
    DiagnosticSchema,
    SnapshotRequest,
)
from pennypath_engine.config import Settings
from pennypath_engine.domain.budgets import calculate_budget_progress
from pennypath_engine.domain.dashboard import LedgerIndex
from pennypath_engine.domain.diagnostics import Diagnostics
from pennypath_engine.domain.exceptions import DomainException
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/budgets/progress", response_model=BudgetProgressResponse)
def get_budget_progress(
    request_body: SnapshotRequest,
    request: Request,
    month: Optional[int] = Query(None, description="1-12; defaults to the month of now"),
    year: Optional[int] = Query(None, description="Defaults to the year of now"),
    config: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Spend against limit for every budget of the month.

    A month outside 1-12 yields an empty list plus a diagnostic rather than
    a validation error.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()
    month = now.month if month is None else month
    year = now.year if year is None else year
    diagnostics = Diagnostics()

    try:
        snapshot = request_body.to_snapshot()
        index = LedgerIndex.build(snapshot, diagnostics)
        resolvable = [t for t in snapshot.transactions if t.account_id in index.accounts]
        progress = calculate_budget_progress(
            snapshot.budgets,
            resolvable,
            snapshot.categories,
            month,
            year,
            duplicate_policy=config.budget_duplicate_policy,
            diagnostics=diagnostics,
        )

    except DomainException as e:
        logging.warning(f"Unprocessable snapshot: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_computation("budgets", diagnostics.items, duration)
    log_computation(request_id, "budgets", len(progress), len(diagnostics), duration * 1000)

    return BudgetProgressResponse(
        month=month,
        year=year,
        budgets=[BudgetProgressSchema.from_domain(p) for p in progress],
        diagnostics=[DiagnosticSchema.from_domain(d) for d in diagnostics.items],
    )
