"""POST /v1/events/active - events running now"""

import time
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Request

from pennypath_engine.api.dependencies import get_clock, get_request_id
from pennypath_engine.api.v1.schemas import ActiveEventSchema, ActiveEventsResponse, SnapshotRequest
from pennypath_engine.domain.ledger_queries import active_events
from pennypath_engine.infrastructure.observability.logging import log_computation
from pennypath_engine.infrastructure.observability.metrics import record_computation

router = APIRouter()


@router.post("/events/active", response_model=ActiveEventsResponse)
def get_active_events(
    request_body: SnapshotRequest,
    request: Request,
    clock: Callable[[], datetime] = Depends(get_clock),
):
    start_time = time.time()
    request_id = get_request_id(request)
    now = request_body.now or clock()

    running = active_events(request_body.to_snapshot().events, now)

    duration = time.time() - start_time
    record_computation("events", (), duration)
    log_computation(request_id, "events", len(running), 0, duration * 1000)

    return ActiveEventsResponse(
        events=[ActiveEventSchema(id=e.id, name=e.name, start_date=e.start_date, end_date=e.end_date) for e in running]
    )
