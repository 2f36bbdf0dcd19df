"""
Centralized router registration for all API endpoints.
"""

import importlib
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from fastapi import FastAPI

logger = structlog.get_logger(__name__)


@dataclass
class RouterConfig:
    """Configuration for a router to be registered."""

    module_path: str
    router_name: str
    prefix: str
    tags: Sequence[str | Enum] | None
    description: str = ""


ROUTER_CONFIGS = [
    RouterConfig(
        module_path="fireguard.platform.billing.usage.router",
        router_name="router",
        prefix="/api/v1",
        tags=["Metering"],
        description="Usage snapshots and the monthly metering run",
    ),
    RouterConfig(
        module_path="fireguard.platform.billing.invoicing.router",
        router_name="router",
        prefix="/api/v1",
        tags=["Invoices"],
        description="Invoice generation and lifecycle",
    ),
    RouterConfig(
        module_path="fireguard.platform.billing.limits.router",
        router_name="router",
        prefix="/api/v1",
        tags=["Limits"],
        description="Tenant quota usage",
    ),
    RouterConfig(
        module_path="fireguard.platform.billing.router",
        router_name="router",
        prefix="/api/v1",
        tags=["Billing"],
        description="Billing overview and settings",
    ),
]


def _register_router(app: FastAPI, config: RouterConfig) -> None:
    """Register a single router with the application.

    Import errors propagate: every configured router is required.
    """
    module = importlib.import_module(config.module_path)
    router = getattr(module, config.router_name)
    router_tags = list(config.tags) if config.tags is not None else None
    app.include_router(router, prefix=config.prefix, tags=router_tags)
    logger.debug("router.registered", router=config.description, prefix=config.prefix)


def register_routers(app: FastAPI) -> None:
    """Register all API routers with the application."""
    for config in ROUTER_CONFIGS:
        _register_router(app, config)
    logger.info("routers.registered", count=len(ROUTER_CONFIGS))


def get_api_info() -> dict[str, Any]:
    """Summary of the mounted API surface."""
    return {
        "version": "v1",
        "endpoints": {
            config.tags[0] if config.tags else config.module_path: config.description
            for config in ROUTER_CONFIGS
        },
    }


__all__ = ["ROUTER_CONFIGS", "RouterConfig", "get_api_info", "register_routers"]
