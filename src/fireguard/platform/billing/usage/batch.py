"""
Scheduled metering run.

Snapshots every active tenant for one month. Each tenant gets its own
session, so one tenant's failure never rolls back or blocks another's.
"""

from collections.abc import Sequence
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fireguard.platform.billing.exceptions import BillingError
from fireguard.platform.billing.metrics import BillingMetrics, get_billing_metrics
from fireguard.platform.billing.usage.models import BatchRunResult, TenantUsageResult
from fireguard.platform.billing.usage.periods import normalize_period, period_key
from fireguard.platform.billing.usage.service import UsageLedger
from fireguard.platform.db import get_async_session_maker
from fireguard.platform.tenant.service import TenantService

logger = structlog.get_logger(__name__)


class UsageBatchRunner:
    """Runs the monthly usage snapshot across tenants."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        metrics: BillingMetrics | None = None,
    ) -> None:
        self.session_factory = session_factory or get_async_session_maker()
        self.metrics = metrics or get_billing_metrics()

    async def run_monthly_usage_for_all_tenants(
        self,
        period: datetime | None = None,
        tenant_ids: Sequence[str] | None = None,
    ) -> BatchRunResult:
        """
        Snapshot usage for every active tenant, or only for ``tenant_ids``.

        Naming tenants explicitly includes inactive ones, which is how a
        previous run's ``failed_tenant_ids`` are retried.
        """
        period_start = normalize_period(period)
        if tenant_ids is None:
            async with self.session_factory() as session:
                tenant_ids = await TenantService(session).list_tenant_ids(active_only=True)

        log = logger.bind(period=period_key(period_start))
        log.info("usage.batch.started", tenants=len(tenant_ids))

        results: list[TenantUsageResult] = []
        for tenant_id in tenant_ids:
            results.append(await self._snapshot_one(tenant_id, period_start))

        batch = BatchRunResult(period=period_start, results=results)
        log.info(
            "usage.batch.completed",
            tracked=batch.tracked,
            failed=batch.failed,
            failed_tenant_ids=batch.failed_tenant_ids,
        )
        return batch

    async def _snapshot_one(self, tenant_id: str, period_start: datetime) -> TenantUsageResult:
        async with self.session_factory() as session:
            try:
                record = await UsageLedger(session, metrics=self.metrics).snapshot_usage(
                    tenant_id, period_start
                )
            except BillingError as e:
                await session.rollback()
                self._record_failure(tenant_id, e.error_code, e)
                return TenantUsageResult(
                    tenant_id=tenant_id, success=False, error=e.message, error_code=e.error_code
                )
            except Exception as e:
                await session.rollback()
                self._record_failure(tenant_id, type(e).__name__, e)
                return TenantUsageResult(
                    tenant_id=tenant_id, success=False, error=str(e), error_code=type(e).__name__
                )
        return TenantUsageResult(tenant_id=tenant_id, success=True, record=record)

    def _record_failure(self, tenant_id: str, error_code: str, error: Exception) -> None:
        self.metrics.record_usage_snapshot_failed(tenant_id, error_code)
        logger.error(
            "usage.batch.tenant_failed",
            tenant_id=tenant_id,
            error_code=error_code,
            error=str(error),
            exc_info=not isinstance(error, BillingError),
        )


__all__ = ["UsageBatchRunner"]
