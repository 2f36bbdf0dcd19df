"""Quota API router."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.limits.schemas import TenantLimits
from fireguard.platform.billing.limits.service import QuotaEnforcer
from fireguard.platform.db import get_async_session

router = APIRouter(prefix="/limits")


def get_quota_enforcer(db: Annotated[AsyncSession, Depends(get_async_session)]) -> QuotaEnforcer:
    """Dependency to get QuotaEnforcer instance."""
    return QuotaEnforcer(db)


@router.get("/{tenant_id}", response_model=TenantLimits)
async def get_tenant_limits(
    tenant_id: str,
    enforcer: Annotated[QuotaEnforcer, Depends(get_quota_enforcer)],
) -> TenantLimits:
    """Current usage against every quota for the tenant."""
    return await enforcer.get_all_limits(tenant_id)


__all__ = ["router"]
