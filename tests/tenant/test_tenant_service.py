"""
Tests for TenantService billing configuration and locking.
"""

from decimal import Decimal

import pytest

from fireguard.platform.billing.exceptions import (
    InvalidBillingConfigError,
    TenantNotFoundError,
    UnsupportedBillingModelError,
)
from fireguard.platform.tenant.models import BillingModel, ClientType
from fireguard.platform.tenant.service import TenantService

pytestmark = pytest.mark.asyncio


class TestUpdateBillingConfig:
    async def test_partial_update(self, async_db_session, tenant_factory):
        tenant = await tenant_factory()
        service = TenantService(async_db_session)

        config = await service.update_billing_config(
            tenant.id, {"price_per_door": "15.00", "max_doors": 250}
        )

        assert config.price_per_door == Decimal("15.00")
        assert config.max_doors == 250
        assert config.billing_model == BillingModel.PER_DOOR
        stored = await service.get_billing_config(tenant.id)
        assert stored.max_doors == 250

    async def test_switch_to_contractor(self, async_db_session, tenant_factory):
        tenant = await tenant_factory()

        config = await TenantService(async_db_session).update_billing_config(
            tenant.id,
            {"client_type": "CONTRACTOR", "billing_model": None, "price_per_inspector": "65"},
        )

        assert config.client_type == ClientType.CONTRACTOR

    async def test_negative_price_rejected(self, async_db_session, tenant_factory):
        tenant = await tenant_factory()

        with pytest.raises(InvalidBillingConfigError) as exc_info:
            await TenantService(async_db_session).update_billing_config(
                tenant.id, {"price_per_door": "-1"}
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "INVALID_BILLING_CONFIG"

    async def test_unsupported_combination_rejected(self, async_db_session, tenant_factory):
        tenant = await tenant_factory()
        service = TenantService(async_db_session)

        with pytest.raises(UnsupportedBillingModelError):
            await service.update_billing_config(tenant.id, {"billing_model": None})

        stored = await service.get_billing_config(tenant.id)
        assert stored.billing_model == BillingModel.PER_DOOR

    async def test_unknown_tenant(self, async_db_session):
        with pytest.raises(TenantNotFoundError):
            await TenantService(async_db_session).update_billing_config("missing", {})


class TestTenantLocks:
    async def test_lock_returns_limits(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_doors=7, max_inspectors=2)

        limits = await TenantService(async_db_session).lock_for_quota(tenant.id)
        await async_db_session.rollback()

        assert limits["max_doors"] == 7
        assert limits["max_inspectors"] == 2

    async def test_invoice_sequence_increments(self, async_db_session, tenant_factory):
        tenant = await tenant_factory()
        service = TenantService(async_db_session)

        assert await service.allocate_invoice_sequence(tenant.id) == 1
        assert await service.allocate_invoice_sequence(tenant.id) == 2

    async def test_list_tenant_ids(self, async_db_session, tenant_factory):
        active = await tenant_factory()
        inactive = await tenant_factory(is_active=False)
        service = TenantService(async_db_session)

        assert await service.list_tenant_ids() == [active.id]
        assert set(await service.list_tenant_ids(active_only=False)) == {active.id, inactive.id}
