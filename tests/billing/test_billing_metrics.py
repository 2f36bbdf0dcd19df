"""
Tests for billing metrics recording.
"""

from unittest.mock import MagicMock

import pytest

from fireguard.platform.billing.exceptions import LimitExceededError
from fireguard.platform.billing.limits.schemas import ResourceType
from fireguard.platform.billing.limits.service import QuotaEnforcer
from fireguard.platform.billing.metrics import BillingMetrics, get_billing_metrics
from fireguard.platform.billing.usage.service import UsageLedger
from fireguard.platform.resources.models import FireDoor


@pytest.fixture
def metrics():
    meter = MagicMock()
    meter.create_counter.side_effect = lambda **kwargs: MagicMock(name=kwargs["name"])
    meter.create_histogram.side_effect = lambda **kwargs: MagicMock(name=kwargs["name"])
    return BillingMetrics(meter=meter)


class TestBillingMetrics:
    def test_invoice_issued_records_amount(self, metrics):
        metrics.record_invoice_issued("tenant-1", 38400, "GBP")

        metrics.invoice_issued_counter.add.assert_called_once_with(
            1, {"tenant_id": "tenant-1", "currency": "GBP"}
        )
        metrics.invoice_amount_histogram.record.assert_called_once_with(
            38400, {"tenant_id": "tenant-1", "currency": "GBP"}
        )

    def test_zero_overdue_not_recorded(self, metrics):
        metrics.record_invoices_overdue(0)

        metrics.invoice_overdue_counter.add.assert_not_called()

    def test_default_instance_is_shared(self):
        assert get_billing_metrics() is get_billing_metrics()

    async def test_snapshot_recorded(self, metrics, async_db_session, tenant_factory):
        tenant = await tenant_factory()

        await UsageLedger(async_db_session, metrics=metrics).snapshot_usage(tenant.id)

        metrics.usage_snapshot_counter.add.assert_called_once_with(1, {"tenant_id": tenant.id})

    async def test_quota_rejection_recorded(self, metrics, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_doors=0)

        with pytest.raises(LimitExceededError):
            await QuotaEnforcer(async_db_session, metrics=metrics).create_within_limit(
                tenant.id, ResourceType.DOORS, lambda: FireDoor(door_number="FD-1")
            )

        metrics.quota_rejected_counter.add.assert_called_once_with(
            1, {"tenant_id": tenant.id, "resource_type": "doors"}
        )
