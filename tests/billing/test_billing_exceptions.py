"""
Tests for billing exceptions and billing configuration.
"""

from decimal import Decimal

from fireguard.platform.billing.config import (
    BillingConfig,
    InvoiceConfig,
    get_billing_config,
    set_billing_config,
)
from fireguard.platform.billing.exceptions import (
    BillingError,
    InvalidInvoiceStatusError,
    InvoicedPeriodReadOnlyError,
    InvoiceNotFoundError,
    LimitExceededError,
    NoUnbilledUsageError,
    TenantNotFoundError,
)


class TestBillingErrors:
    def test_limit_exceeded_message(self):
        error = LimitExceededError("doors", current=100, limit=100)

        assert error.message == (
            "You have reached your door limit of 100. Please contact support to upgrade your plan."
        )
        assert error.status_code == 403
        assert error.error_code == "LIMIT_EXCEEDED"
        assert (error.resource_type, error.current, error.limit) == ("doors", 100, 100)

    def test_to_dict(self):
        error = NoUnbilledUsageError("t-1", "2025-01-01T00:00:00+00:00", "2025-03-31T00:00:00+00:00")

        payload = error.to_dict()

        assert payload["error_code"] == "NO_UNBILLED_USAGE"
        assert payload["status_code"] == 422
        assert payload["context"]["tenant_id"] == "t-1"
        assert payload["recovery_hint"]

    def test_status_codes(self):
        assert TenantNotFoundError("t-1").status_code == 404
        assert InvoiceNotFoundError("missing", invoice_id="i-1").status_code == 404
        assert InvoicedPeriodReadOnlyError("t-1", "2025-01").status_code == 409
        assert InvalidInvoiceStatusError("paid", "PAID", "PAID").status_code == 409

    def test_all_errors_share_base(self):
        for error in (
            TenantNotFoundError("t"),
            LimitExceededError("users", 1, 1),
            InvoicedPeriodReadOnlyError("t", "2025-01", "inv-1"),
        ):
            assert isinstance(error, BillingError)

    def test_read_only_context_includes_invoice(self):
        error = InvoicedPeriodReadOnlyError("t-1", "2025-01", invoice_id="inv-9")

        assert error.error_code == "INVOICED_PERIOD_READ_ONLY"
        assert error.context == {"tenant_id": "t-1", "period": "2025-01", "invoice_id": "inv-9"}


class TestBillingConfig:
    def test_defaults_from_settings(self):
        config = get_billing_config()

        assert config.tax.default_tax_rate == Decimal("0.20")
        assert config.currency.currency == "GBP"
        assert config.invoice.due_days_default == 30
        assert config.quota.near_limit_threshold == Decimal("0.80")

    def test_invoice_number_format(self):
        assert InvoiceConfig().format_number("ACME", 1) == "INV-ACME-00001"
        assert InvoiceConfig(sequence_digits=3).format_number("ACME", 42) == "INV-ACME-042"

    def test_override(self):
        custom = BillingConfig(invoice=InvoiceConfig(number_prefix="FG"))
        set_billing_config(custom)

        assert get_billing_config().invoice.format_number("X", 7) == "FG-X-00007"
