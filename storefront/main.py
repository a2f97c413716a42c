"""Storefront API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from storefront.api.admin import router as admin_router
from storefront.api.cart import router as cart_router
from storefront.api.health import router as health_router
from storefront.api.middleware import error_content, setup_middleware
from storefront.api.orders import router as orders_router
from storefront.domain.exceptions import (
    ConcurrentModificationError,
    DomainError,
    EmptyCartError,
    InsufficientStockError,
    InvalidInputError,
    NotFoundError,
    OrderNotCancellableError,
)
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import create_tables
from storefront.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging(settings.log_level)
    logger.info(
        "Starting storefront API",
        version=settings.api_version,
        debug=settings.debug,
    )

    if settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables ensured")

    yield

    logger.info("Shutting down storefront API")


app = FastAPI(
    title="Storefront API",
    description="Cart, pricing, inventory and order checkout core",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, API key auth, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(admin_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


# Checked in order; the first matching base class wins
DOMAIN_ERROR_STATUS: list[tuple[type[DomainError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (OrderNotCancellableError, status.HTTP_400_BAD_REQUEST),
    (EmptyCartError, status.HTTP_400_BAD_REQUEST),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
]


def status_for(exc: DomainError) -> int:
    """Map a domain error to its HTTP status code."""
    for error_type, status_code in DOMAIN_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate business rule failures into error responses."""
    request_id = getattr(request.state, "request_id", None)
    status_code = status_for(exc)

    logger.info(
        "Request rejected",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code,
        status_code=status_code,
        error=exc.message,
    )

    return JSONResponse(
        status_code=status_code,
        content=error_content(
            exc.error_code,
            exc.message,
            jsonable_encoder(exc.details),
            request_id,
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(error_code, message, details, request_id),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return request validation failures in the error envelope."""
    request_id = getattr(request.state, "request_id", None)
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content=error_content("VALIDATION_ERROR", "Validation failed", errors, request_id),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content("INTERNAL_ERROR", "An internal error occurred", request_id=request_id),
    )
