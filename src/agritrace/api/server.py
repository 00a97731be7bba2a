"""
FastAPI server for the traceability ledger.

This module builds the FastAPI application that exposes the ledger over
HTTP. It sets up:
- CORS middleware from the ``[security]`` configuration section
- The ledger instance shared by all route handlers (``app.state.ledger``)
- Exception handlers that map the ledger error taxonomy to HTTP statuses
- All API routers

Error mapping:
    Unauthorized            -> 403
    NotFound                -> 404
    AlreadyRegistered       -> 409
    InvalidStateTransition  -> 409
    ValueError              -> 400
    DatabaseError           -> 500
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agritrace import __version__
from agritrace.api.models import ErrorResponse
from agritrace.api.routes import activities, health, participants, products
from agritrace.config import config
from agritrace.core.errors import (
    AlreadyRegistered,
    InvalidStateTransition,
    LedgerError,
    NotFound,
    Unauthorized,
)
from agritrace.core.ledger import TraceabilityLedger
from agritrace.db.errors import DatabaseError

logger = logging.getLogger(__name__)

LEDGER_ERROR_STATUS: dict[type[LedgerError], int] = {
    Unauthorized: 403,
    NotFound: 404,
    AlreadyRegistered: 409,
    InvalidStateTransition: 409,
}

# OpenAPI documentation for the rejection bodies of ledger routes.
ERROR_RESPONSES: dict[int | str, dict] = {
    status: {"model": ErrorResponse} for status in (400, 403, 404, 409)
}


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = LEDGER_ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.error_kind, "operation": exc.operation},
    )


async def _value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": "invalid_input"})


async def _database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("Database failure serving %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Ledger storage failure", "error": "database_error"},
    )


def create_app(ledger: TraceabilityLedger | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        ledger: Ledger to serve. Defaults to one backed by the configured
            database path.
    """
    app = FastAPI(title="AgriTrace Ledger", version=__version__)
    app.state.ledger = ledger if ledger is not None else TraceabilityLedger()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_origins,
        allow_methods=config.security.cors_allow_methods,
        allow_headers=config.security.cors_allow_headers,
    )

    app.add_exception_handler(LedgerError, _ledger_error_handler)
    app.add_exception_handler(ValueError, _value_error_handler)
    app.add_exception_handler(DatabaseError, _database_error_handler)

    app.include_router(health.router)
    app.include_router(participants.router, responses=ERROR_RESPONSES)
    app.include_router(products.router, responses=ERROR_RESPONSES)
    app.include_router(activities.router, responses=ERROR_RESPONSES)
    return app


def start_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the API with uvicorn using configuration defaults."""
    import uvicorn

    uvicorn.run(
        create_app(),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )
