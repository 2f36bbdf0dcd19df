"""
Billing engine exceptions.

Custom exceptions for metering, quota and invoicing operations with clear
error messages, status codes, context, and recovery hints.
"""

from typing import Any

_RESOURCE_LABELS = {
    "doors": "door",
    "buildings": "building",
    "users": "user",
    "inspectors": "inspector",
}


class BillingError(Exception):
    """
    Base billing error with enhanced context.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for API responses
        status_code: HTTP status code for this error type
        context: Additional context data about the error
        recovery_hint: Suggested action to resolve the error
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 400,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        self.message = message
        self.error_code = error_code or "BILLING_ERROR"
        self.status_code = status_code
        self.context = context or {}
        self.recovery_hint = recovery_hint
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "recovery_hint": self.recovery_hint,
        }


class TenantNotFoundError(BillingError):
    """Tenant not found error."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__(
            f"Tenant {tenant_id} not found",
            "TENANT_NOT_FOUND",
            status_code=404,
            context={"tenant_id": tenant_id},
            recovery_hint="Verify the tenant ID and ensure the tenant exists",
        )
        self.tenant_id = tenant_id


class LimitExceededError(BillingError):
    """A resource quota would be exceeded by a create operation."""

    def __init__(self, resource_type: str, current: int, limit: int) -> None:
        label = _RESOURCE_LABELS.get(resource_type, resource_type)
        super().__init__(
            f"You have reached your {label} limit of {limit}. "
            "Please contact support to upgrade your plan.",
            "LIMIT_EXCEEDED",
            status_code=403,
            context={"resource_type": resource_type, "current": current, "limit": limit},
            recovery_hint="Upgrade your plan or remove unused resources",
        )
        self.resource_type = resource_type
        self.current = current
        self.limit = limit


class PricingError(BillingError):
    """Pricing-related errors."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message, "PRICING_ERROR", status_code=400, context=context, recovery_hint=recovery_hint
        )


class UnsupportedBillingModelError(PricingError):
    """Client type / billing model combination has no pricing formula."""

    def __init__(self, client_type: str, billing_model: str | None) -> None:
        super().__init__(
            f"Unsupported billing combination: {client_type} / {billing_model or 'none'}",
            context={"client_type": client_type, "billing_model": billing_model},
            recovery_hint="Housing associations must be billed PER_DOOR or PER_BUILDING",
        )
        self.error_code = "UNSUPPORTED_BILLING_MODEL"


class InvalidBillingConfigError(PricingError):
    """Billing configuration failed validation."""

    def __init__(self, message: str, validation_errors: list[dict[str, Any]] | None = None) -> None:
        context: dict[str, Any] = {}
        if validation_errors:
            context["validation_errors"] = validation_errors
        super().__init__(
            message,
            context=context,
            recovery_hint="Rates and quotas must be non-negative and the tax rate between 0 and 1",
        )
        self.error_code = "INVALID_BILLING_CONFIG"


class UsageTrackingError(BillingError):
    """Usage tracking errors."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
        status_code: int = 400,
    ):
        super().__init__(
            message,
            "USAGE_TRACKING_ERROR",
            status_code=status_code,
            context=context,
            recovery_hint=recovery_hint,
        )


class InvoicedPeriodReadOnlyError(UsageTrackingError):
    """A snapshot was attempted for a period that has already been invoiced."""

    def __init__(self, tenant_id: str, period: str, invoice_id: str | None = None) -> None:
        context = {"tenant_id": tenant_id, "period": period}
        if invoice_id:
            context["invoice_id"] = invoice_id
        super().__init__(
            f"Usage for {period} has already been invoiced and cannot be changed",
            context=context,
            recovery_hint="Billed history is read-only; issue a correction outside the ledger",
            status_code=409,
        )
        self.error_code = "INVOICED_PERIOD_READ_ONLY"


class InvoiceError(BillingError):
    """Invoice-related errors."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message, "INVOICE_ERROR", status_code=400, context=context, recovery_hint=recovery_hint
        )


class NoUnbilledUsageError(InvoiceError):
    """Nothing to invoice for the requested range."""

    def __init__(self, tenant_id: str, period_start: str, period_end: str) -> None:
        super().__init__(
            "No unbilled usage records found for the period",
            context={
                "tenant_id": tenant_id,
                "billing_period_start": period_start,
                "billing_period_end": period_end,
            },
            recovery_hint="Snapshot usage for the period first, or choose another range",
        )
        self.error_code = "NO_UNBILLED_USAGE"
        self.status_code = 422


class InvoiceNotFoundError(InvoiceError):
    """Invoice not found error."""

    def __init__(self, message: str, invoice_id: str | None = None) -> None:
        context = {}
        if invoice_id:
            context["invoice_id"] = invoice_id

        super().__init__(
            message, context=context, recovery_hint="Verify the invoice ID and ensure it exists"
        )
        self.error_code = "INVOICE_NOT_FOUND"
        self.status_code = 404


class InvalidInvoiceStatusError(InvoiceError):
    """Invalid invoice status transition."""

    def __init__(self, message: str, current_status: str, requested_status: str) -> None:
        super().__init__(
            message,
            context={"current_status": current_status, "requested_status": requested_status},
            recovery_hint=f"Cannot transition from {current_status} to {requested_status}",
        )
        self.error_code = "INVALID_INVOICE_STATUS"
        self.status_code = 409
