"""
Billing module.

Provides:
- Pricing model
- Usage metering ledger and the scheduled metering run
- Quota enforcement
- Invoice generation and lifecycle
"""

from fireguard.platform.billing.exceptions import (
    BillingError,
    InvoicedPeriodReadOnlyError,
    InvoiceNotFoundError,
    LimitExceededError,
    NoUnbilledUsageError,
    TenantNotFoundError,
)

__all__ = [
    "BillingError",
    "InvoiceNotFoundError",
    "InvoicedPeriodReadOnlyError",
    "LimitExceededError",
    "NoUnbilledUsageError",
    "TenantNotFoundError",
]
