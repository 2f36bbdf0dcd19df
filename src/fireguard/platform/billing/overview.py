"""
Billing overview for a tenant dashboard.

Current counts, the cost they would produce this month, this month's
usage record (if snapshotted) and the most recent invoices.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.config import BillingConfig, get_billing_config
from fireguard.platform.billing.invoicing.models import Invoice
from fireguard.platform.billing.invoicing.service import InvoiceGenerator
from fireguard.platform.billing.money_utils import format_amount, quantize_amount
from fireguard.platform.billing.pricing import ResourceCounts, calculate_amount
from fireguard.platform.billing.usage.counter import ResourceCounter
from fireguard.platform.billing.usage.models import UsageRecord
from fireguard.platform.billing.usage.periods import normalize_period
from fireguard.platform.billing.usage.service import UsageLedger
from fireguard.platform.tenant.models import TenantBillingConfig
from fireguard.platform.tenant.service import TenantService


class CostEstimate(BaseModel):
    estimated_monthly_cost: Decimal
    estimated_annual_cost: Decimal
    formatted_monthly_cost: str
    formatted_annual_cost: str
    unsupported: bool = False


class BillingOverview(BaseModel):
    """Dashboard view of a tenant's billing position."""

    tenant_id: str
    period: datetime
    billing: TenantBillingConfig
    usage: ResourceCounts
    costs: CostEstimate
    current_usage_record: UsageRecord | None = None
    recent_invoices: list[Invoice] = Field(default_factory=list)


class BillingOverviewService:
    def __init__(self, db: AsyncSession, config: BillingConfig | None = None) -> None:
        self.db = db
        self.config = config or get_billing_config()

    async def get_overview(self, tenant_id: str, now: datetime | None = None) -> BillingOverview:
        period = normalize_period(now)
        billing = await TenantService(self.db).get_billing_config(tenant_id)
        counts = await ResourceCounter(self.db).count_resources(
            tenant_id, as_of=now, period_start=period
        )

        pricing = calculate_amount(billing, counts)
        annual = quantize_amount(pricing.amount * 12)
        costs = CostEstimate(
            estimated_monthly_cost=pricing.amount,
            estimated_annual_cost=annual,
            formatted_monthly_cost=format_amount(pricing.amount),
            formatted_annual_cost=format_amount(annual),
            unsupported=pricing.breakdown.unsupported,
        )

        invoices = await InvoiceGenerator(self.db, config=self.config).list_invoices(
            tenant_id, limit=self.config.invoice.recent_invoice_count
        )
        return BillingOverview(
            tenant_id=tenant_id,
            period=period,
            billing=billing,
            usage=counts,
            costs=costs,
            current_usage_record=await UsageLedger(self.db).get_usage_record(tenant_id, period),
            recent_invoices=invoices,
        )


__all__ = ["BillingOverview", "BillingOverviewService", "CostEstimate"]
