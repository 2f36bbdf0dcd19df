"""
Tenant billing router: overview and billing settings.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.overview import BillingOverview, BillingOverviewService
from fireguard.platform.db import get_async_session
from fireguard.platform.tenant.models import TenantBillingConfig
from fireguard.platform.tenant.service import TenantService

router = APIRouter(prefix="/billing")


@router.get("/{tenant_id}/overview", response_model=BillingOverview)
async def get_billing_overview(
    tenant_id: str,
    db: Annotated[AsyncSession, Depends(get_async_session)],
) -> BillingOverview:
    """Current usage, estimated costs, this month's record and recent invoices."""
    return await BillingOverviewService(db).get_overview(tenant_id)


@router.put("/{tenant_id}/settings", response_model=TenantBillingConfig)
async def update_billing_settings(
    tenant_id: str,
    changes: Annotated[dict[str, Any], Body()],
    db: Annotated[AsyncSession, Depends(get_async_session)],
) -> TenantBillingConfig:
    """
    Update pricing, tax and quota settings.

    Only the supplied fields change. Invalid values or an unsupported
    client type / billing model combination are rejected with 400.
    """
    return await TenantService(db).update_billing_config(tenant_id, changes)


__all__ = ["router"]
