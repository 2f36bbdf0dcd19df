"""
Metering API router.

Snapshots usage, runs the monthly batch and lists unbilled records.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.usage.batch import UsageBatchRunner
from fireguard.platform.billing.usage.models import (
    BatchRunResult,
    RunAllRequest,
    SnapshotRequest,
    UsageRecord,
)
from fireguard.platform.billing.usage.service import UsageLedger
from fireguard.platform.db import get_async_session, get_async_session_maker

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/metering")


def get_usage_ledger(db: Annotated[AsyncSession, Depends(get_async_session)]) -> UsageLedger:
    """Dependency to get UsageLedger instance."""
    return UsageLedger(db)


def get_batch_runner() -> UsageBatchRunner:
    return UsageBatchRunner(get_async_session_maker())


@router.post("/snapshot", response_model=UsageRecord)
async def snapshot_usage(
    request: SnapshotRequest,
    ledger: Annotated[UsageLedger, Depends(get_usage_ledger)],
) -> UsageRecord:
    """Snapshot a tenant's usage for the month containing ``period``."""
    return await ledger.snapshot_usage(request.tenant_id, request.period)


@router.post("/run-all", response_model=BatchRunResult)
async def run_monthly_usage(
    request: RunAllRequest,
    runner: Annotated[UsageBatchRunner, Depends(get_batch_runner)],
) -> BatchRunResult:
    """
    Snapshot every active tenant.

    Per-tenant failures are reported in the result rather than failing the
    request; pass ``failed_tenant_ids`` back as ``tenant_ids`` to retry.
    """
    return await runner.run_monthly_usage_for_all_tenants(request.period, request.tenant_ids)


@router.get("/{tenant_id}/unbilled", response_model=list[UsageRecord])
async def list_unbilled_records(
    tenant_id: str,
    ledger: Annotated[UsageLedger, Depends(get_usage_ledger)],
) -> list[UsageRecord]:
    return await ledger.list_unbilled_records(tenant_id)


__all__ = ["router"]
