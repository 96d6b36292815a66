"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from billboard_ledger.api.dependencies import get_request_id
from billboard_ledger.api.middleware import MetricsMiddleware, RequestIDMiddleware
from billboard_ledger.api.v1 import allocations, debt, distributions, installments, pricing
from billboard_ledger.config import settings
from billboard_ledger.domain.exceptions import DomainException
from billboard_ledger.infrastructure.observability.logging import setup_logging
from billboard_ledger.infrastructure.observability.metrics import record_validation_failures

# Setup structured logging
setup_logging(settings.log_level)


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Malformed records and impossible schedules are the caller's to fix"""
    logging.warning(
        f"Domain error: {exc}",
        extra={"request_id": get_request_id(request), "error_code": exc.code},
    )
    record_validation_failures([exc.code])
    return JSONResponse(status_code=422, content={"detail": [exc.to_dict()]})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Billboard Ledger",
        description="Debt aggregation, payment distribution and cost allocation service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(debt.router, prefix="/v1", tags=["debt"])
    app.include_router(distributions.router, prefix="/v1", tags=["distributions"])
    app.include_router(pricing.router, prefix="/v1", tags=["pricing"])
    app.include_router(allocations.router, prefix="/v1", tags=["allocations"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])

    return app


app = create_app()
