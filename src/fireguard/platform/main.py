"""
Main FastAPI application entry point for the FireGuard billing engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI

from fireguard.platform.core.exception_handlers import register_exception_handlers
from fireguard.platform.db import check_database_health, get_async_engine
from fireguard.platform.logging import setup_logging
from fireguard.platform.routers import get_api_info, register_routers
from fireguard.platform.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle events."""
    logger = structlog.get_logger(__name__)
    logger.info(
        "service.startup.begin",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
    )

    yield

    logger.info("service.shutdown.begin")
    await get_async_engine().dispose()
    logger.info("service.shutdown.complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging()

    app = FastAPI(
        title="FireGuard Billing Engine",
        description="Usage metering, quota enforcement and invoicing for FireGuard tenants",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    register_exception_handlers(app)
    register_routers(app)

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        database_ok = await check_database_health()
        return {
            "status": "healthy" if database_ok else "degraded",
            "version": settings.app_version,
            "checks": {"database": database_ok},
        }

    @app.get("/api/v1/info")
    async def api_v1_info() -> dict[str, Any]:
        return get_api_info()

    return app


__all__ = ["create_app", "lifespan"]
