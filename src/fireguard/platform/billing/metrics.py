"""
Billing module metrics.

Instruments come from the OpenTelemetry API; without a configured SDK they
are no-ops.
"""

from decimal import Decimal

import structlog
from opentelemetry import metrics
from opentelemetry.metrics import Counter, Histogram, Meter

logger = structlog.get_logger(__name__)


class BillingMetrics:
    """Billing metrics collector"""

    def __init__(self, meter: Meter | None = None) -> None:
        self.meter = meter or metrics.get_meter("fireguard.billing")

        # Usage metrics
        self.usage_snapshot_counter = self._create_counter(
            name="billing.usage.snapshot",
            description="Number of usage snapshots written",
        )
        self.usage_snapshot_failed_counter = self._create_counter(
            name="billing.usage.snapshot_failed",
            description="Number of usage snapshots that failed during batch runs",
        )

        # Invoice metrics
        self.invoice_issued_counter = self._create_counter(
            name="billing.invoice.issued",
            description="Number of invoices issued",
        )
        self.invoice_paid_counter = self._create_counter(
            name="billing.invoice.paid",
            description="Number of invoices paid",
        )
        self.invoice_overdue_counter = self._create_counter(
            name="billing.invoice.overdue",
            description="Number of invoices transitioned to overdue",
        )
        self.invoice_amount_histogram = self._create_histogram(
            name="billing.invoice.amount",
            description="Invoice amounts",
            unit="minor_units",
        )

        # Quota metrics
        self.quota_rejected_counter = self._create_counter(
            name="billing.quota.rejected",
            description="Number of creates rejected by a tenant quota",
        )

    def record_usage_snapshot(self, tenant_id: str, amount: Decimal) -> None:
        self.usage_snapshot_counter.add(1, {"tenant_id": tenant_id})
        logger.debug("billing.metrics.usage_snapshot", tenant_id=tenant_id, amount=str(amount))

    def record_usage_snapshot_failed(self, tenant_id: str, error_code: str) -> None:
        self.usage_snapshot_failed_counter.add(1, {"tenant_id": tenant_id, "error_code": error_code})

    def record_invoice_issued(self, tenant_id: str, amount_minor: int, currency: str) -> None:
        """Record invoice issue"""
        attributes = {"tenant_id": tenant_id, "currency": currency}
        self.invoice_issued_counter.add(1, attributes)
        self.invoice_amount_histogram.record(amount_minor, attributes)

    def record_invoice_paid(self, tenant_id: str, invoice_id: str) -> None:
        self.invoice_paid_counter.add(1, {"tenant_id": tenant_id, "invoice_id": invoice_id})

    def record_invoices_overdue(self, count: int) -> None:
        if count:
            self.invoice_overdue_counter.add(count)

    def record_quota_rejected(self, tenant_id: str, resource_type: str) -> None:
        self.quota_rejected_counter.add(
            1, {"tenant_id": tenant_id, "resource_type": resource_type}
        )

    def _create_counter(self, name: str, description: str, unit: str = "1") -> Counter:
        return self.meter.create_counter(name=name, description=description, unit=unit)

    def _create_histogram(self, name: str, description: str, unit: str = "1") -> Histogram:
        return self.meter.create_histogram(name=name, description=description, unit=unit)


_billing_metrics: BillingMetrics | None = None


def get_billing_metrics() -> BillingMetrics:
    """Get the global billing metrics instance"""
    global _billing_metrics
    if _billing_metrics is None:
        _billing_metrics = BillingMetrics()
    return _billing_metrics


def set_billing_metrics(billing_metrics: BillingMetrics | None) -> None:
    """Replace the global billing metrics instance (tests)."""
    global _billing_metrics
    _billing_metrics = billing_metrics


__all__ = ["BillingMetrics", "get_billing_metrics", "set_billing_metrics"]
