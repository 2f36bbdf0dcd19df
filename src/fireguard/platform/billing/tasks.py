"""
Celery tasks for the billing engine.

Each task runs its coroutine on a fresh event loop with its own engine, so
pooled connections never cross loops.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fireguard.platform.billing.invoicing.service import InvoiceGenerator
from fireguard.platform.billing.usage.batch import UsageBatchRunner
from fireguard.platform.celery_app import celery_app
from fireguard.platform.db import get_async_database_url

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _run(work: Callable[[async_sessionmaker[AsyncSession]], Awaitable[T]]) -> T:
    async def runner() -> T:
        engine = create_async_engine(get_async_database_url())
        try:
            return await work(async_sessionmaker(engine, expire_on_commit=False))
        finally:
            await engine.dispose()

    return asyncio.run(runner())


@celery_app.task(name="billing.usage.run_monthly")
def run_monthly_usage_task(
    period: str | None = None, tenant_ids: list[str] | None = None
) -> dict[str, Any]:
    """Snapshot every active tenant's usage for the current (or given) month."""
    period_dt = datetime.fromisoformat(period) if period else None

    async def work(factory: async_sessionmaker[AsyncSession]) -> dict[str, Any]:
        result = await UsageBatchRunner(factory).run_monthly_usage_for_all_tenants(
            period_dt, tenant_ids
        )
        return {
            "period": result.period.isoformat(),
            "tracked": result.tracked,
            "failed": result.failed,
            "failed_tenant_ids": result.failed_tenant_ids,
        }

    summary = _run(work)
    logger.info("task.usage.run_monthly.completed", **summary)
    return summary


@celery_app.task(name="billing.invoices.check_overdue")
def check_overdue_invoices_task() -> dict[str, int]:
    """Move issued invoices past their due date to OVERDUE."""

    async def work(factory: async_sessionmaker[AsyncSession]) -> int:
        async with factory() as session:
            return await InvoiceGenerator(session).check_overdue_invoices()

    updated = _run(work)
    logger.info("task.invoices.check_overdue.completed", updated=updated)
    return {"updated": updated}


__all__ = ["check_overdue_invoices_task", "run_monthly_usage_task"]
