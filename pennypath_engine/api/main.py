"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from pennypath_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from pennypath_engine.api.v1 import accounts, arrangements, budgets, dashboard, events, forecast, plan, transactions
from pennypath_engine.infrastructure.observability.logging import setup_logging
from pennypath_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="PennyPath Engine",
        description="Balance forecasts, budgets and repayment schedules over a ledger snapshot",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(budgets.router, prefix="/v1", tags=["budgets"])
    app.include_router(plan.router, prefix="/v1", tags=["plans"])
    app.include_router(arrangements.router, prefix="/v1", tags=["arrangements"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(events.router, prefix="/v1", tags=["events"])

    return app


app = create_app()
