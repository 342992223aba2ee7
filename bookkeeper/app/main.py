"""
FastAPI Application Entry Point.

This is the main application file for the Bookkeeper Ledger Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from bookkeeper.app.core.config import settings
from bookkeeper.app.api.v1.router import router as api_v1_router
from bookkeeper.app.core.observability import ObservabilityMiddleware, configure_logging
from bookkeeper.app.core.redis_client import ping_redis
from bookkeeper.app.db.session import engine, Base
from bookkeeper.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from bookkeeper.app.models.stock_entry import StockEntry  # before ledger entries for FK
from bookkeeper.app.models.ledger_entry import LedgerEntry
from bookkeeper.app.models.client import Client
from bookkeeper.app.models.stock_settings import StockSettings
from bookkeeper.app.models.audit_log import AuditLog

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Client, company and supplier ledgers with always-consistent running balances",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and lock store reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Bookkeeper Ledger Backend API",
        "docs": "/docs",
        "health": "/health",
    }
