"""
Invoice models.

An invoice aggregates one or more unbilled usage records. Line items are a
typed list stored as JSON on the invoice row.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy import JSON, DateTime, Index, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from fireguard.platform.db import Base, StrictTenantMixin, TimestampMixin, ensure_utc, generate_id


class InvoiceStatus(str, Enum):
    """Invoice lifecycle: ISSUED -> PAID, ISSUED -> OVERDUE -> PAID."""

    ISSUED = "ISSUED"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class InvoiceTable(Base, StrictTenantMixin, TimestampMixin):
    """SQLAlchemy table for invoices."""

    __tablename__ = "billing_invoices"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    # Amounts
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="GBP")

    status: Mapped[InvoiceStatus] = mapped_column(
        SAEnum(InvoiceStatus, native_enum=False, length=20),
        nullable=False,
        default=InvoiceStatus.ISSUED,
    )

    # Dates
    billing_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    billing_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("ix_billing_invoices_tenant_issue", "tenant_id", "issue_date"),
        Index("ix_billing_invoices_status_due", "status", "due_date"),
    )


class InvoiceLineItem(BaseModel):
    """One billed usage record."""

    model_config = ConfigDict(frozen=True)

    usage_record_id: str
    period: datetime
    period_label: str = Field(description="Localized month, e.g. 'Jan 2025'")
    description: str
    quantity: int = Field(ge=0)
    unit_price: Decimal = Field(ge=0, description="Monthly unit rate (4 dp)")
    amount: Decimal = Field(ge=0, description="The usage record's calculated amount")

    @field_validator("period")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class Invoice(BaseModel):
    """API/service view of an invoice."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    invoice_number: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    amount: Decimal
    currency: str
    status: InvoiceStatus
    billing_period_start: datetime
    billing_period_end: datetime
    issue_date: datetime
    due_date: datetime
    paid_date: datetime | None = None
    items: list[InvoiceLineItem] = Field(default_factory=list)
    created_at: datetime | None = None

    @field_validator(
        "billing_period_start",
        "billing_period_end",
        "issue_date",
        "due_date",
        "paid_date",
        "created_at",
    )
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class GenerateInvoiceRequest(BaseModel):
    """Schema for invoicing a tenant's unbilled usage."""

    tenant_id: str = Field(min_length=1)
    billing_period_start: datetime
    billing_period_end: datetime
    due_in_days: int | None = Field(None, ge=0, description="Payment terms (default from config)")

    @model_validator(mode="after")
    def _ordered_range(self) -> "GenerateInvoiceRequest":
        if ensure_utc(self.billing_period_start) > ensure_utc(self.billing_period_end):
            raise ValueError("billing_period_start must not be after billing_period_end")
        return self


class MarkPaidRequest(BaseModel):
    """Schema for recording an invoice payment."""

    paid_date: datetime | None = Field(None, description="Payment date (default: now)")


class OverdueCheckResult(BaseModel):
    updated: int


__all__ = [
    "GenerateInvoiceRequest",
    "Invoice",
    "InvoiceLineItem",
    "InvoiceStatus",
    "InvoiceTable",
    "MarkPaidRequest",
    "OverdueCheckResult",
]
