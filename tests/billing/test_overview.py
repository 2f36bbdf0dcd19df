"""
Tests for the billing overview.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from fireguard.platform.billing.exceptions import TenantNotFoundError
from fireguard.platform.billing.invoicing.service import InvoiceGenerator
from fireguard.platform.billing.overview import BillingOverviewService
from fireguard.platform.billing.usage.service import UsageLedger

pytestmark = pytest.mark.asyncio

MID_JANUARY = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


class TestBillingOverview:
    async def test_costs_and_counts(self, async_db_session, tenant_factory, door_factory):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 100)

        overview = await BillingOverviewService(async_db_session).get_overview(
            tenant.id, now=MID_JANUARY
        )

        assert overview.period == datetime(2025, 1, 1, tzinfo=UTC)
        assert overview.usage.doors == 100
        assert overview.costs.estimated_monthly_cost == Decimal("100.00")
        assert overview.costs.estimated_annual_cost == Decimal("1200.00")
        assert overview.costs.formatted_monthly_cost == "£100.00"
        assert overview.costs.formatted_annual_cost == "£1,200.00"
        assert overview.current_usage_record is None
        assert overview.recent_invoices == []

    async def test_includes_record_and_invoices(
        self, async_db_session, tenant_factory, door_factory
    ):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 10)
        await UsageLedger(async_db_session).snapshot_usage(tenant.id, MID_JANUARY)
        invoice = await InvoiceGenerator(async_db_session).generate_invoice(
            tenant.id, MID_JANUARY.replace(day=1, hour=0), MID_JANUARY
        )

        overview = await BillingOverviewService(async_db_session).get_overview(
            tenant.id, now=MID_JANUARY
        )

        assert overview.current_usage_record is not None
        assert overview.current_usage_record.invoice_id == invoice.id
        assert [i.id for i in overview.recent_invoices] == [invoice.id]

    async def test_unsupported_model_flagged(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(billing_model=None)

        overview = await BillingOverviewService(async_db_session).get_overview(
            tenant.id, now=MID_JANUARY
        )

        assert overview.costs.unsupported is True
        assert overview.costs.estimated_monthly_cost == Decimal("0")

    async def test_unknown_tenant(self, async_db_session):
        with pytest.raises(TenantNotFoundError):
            await BillingOverviewService(async_db_session).get_overview("missing")
