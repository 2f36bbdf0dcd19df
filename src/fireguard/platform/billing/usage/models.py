"""
Usage ledger models.

One `UsageRecordTable` row per (tenant, calendar month). The structured
`UsageDetails` is stored as JSON and only ever handled as a typed model.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from fireguard.platform.billing.pricing import PricingBreakdown, ResourceCounts
from fireguard.platform.db import Base, StrictTenantMixin, TimestampMixin, ensure_utc, generate_id
from fireguard.platform.tenant.models import BillingModel, ClientType, TenantBillingConfig


class AppliedRates(BaseModel):
    """Rates in force when the snapshot was priced."""

    model_config = ConfigDict(frozen=True)

    price_per_door: Decimal
    price_per_building: Decimal
    price_per_inspector: Decimal

    @classmethod
    def from_config(cls, config: TenantBillingConfig) -> "AppliedRates":
        return cls(
            price_per_door=config.price_per_door,
            price_per_building=config.price_per_building,
            price_per_inspector=config.price_per_inspector,
        )


class UsageDetails(BaseModel):
    """Structured breakdown persisted alongside each usage record."""

    model_config = ConfigDict(frozen=True)

    doors: int
    buildings: int
    inspectors: int
    inspections: int
    client_type: ClientType
    billing_model: BillingModel | None
    rates: AppliedRates
    breakdown: PricingBreakdown

    @property
    def counts(self) -> ResourceCounts:
        return ResourceCounts(
            doors=self.doors,
            buildings=self.buildings,
            inspectors=self.inspectors,
            inspections=self.inspections,
        )

    def billing_config(self) -> TenantBillingConfig:
        """Pricing configuration reconstructed from the snapshot."""
        return TenantBillingConfig(
            client_type=self.client_type,
            billing_model=self.billing_model,
            price_per_door=self.rates.price_per_door,
            price_per_building=self.rates.price_per_building,
            price_per_inspector=self.rates.price_per_inspector,
        )


class UsageRecordTable(Base, StrictTenantMixin, TimestampMixin):
    """SQLAlchemy table for monthly usage snapshots."""

    __tablename__ = "billing_usage_records"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    period: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Counts at snapshot time
    door_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    building_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inspector_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inspection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    calculated_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    usage_details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Set exactly once, by the invoice generator
    invoiced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    invoice_id: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("billing_invoices.id"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "period", name="uq_billing_usage_records_tenant_period"),
        Index("ix_billing_usage_records_tenant_invoiced", "tenant_id", "invoiced", "period"),
        Index("ix_billing_usage_records_invoice", "invoice_id"),
    )


class UsageRecord(BaseModel):
    """API/service view of a usage record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    period: datetime
    door_count: int
    building_count: int
    inspector_count: int
    inspection_count: int
    calculated_amount: Decimal
    usage_details: UsageDetails
    invoiced: bool
    invoice_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("period", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class SnapshotRequest(BaseModel):
    """Schema for snapshotting a tenant's usage."""

    tenant_id: str = Field(min_length=1, description="Tenant to snapshot")
    period: datetime | None = Field(None, description="Any instant within the month (default: now)")


class RunAllRequest(BaseModel):
    """Schema for the scheduled metering run."""

    period: datetime | None = Field(None, description="Any instant within the month (default: now)")
    tenant_ids: list[str] | None = Field(
        None, description="Restrict the run to these tenants (e.g. to retry failures)"
    )


class TenantUsageResult(BaseModel):
    """Per-tenant outcome of a batch run."""

    tenant_id: str
    success: bool
    record: UsageRecord | None = None
    error: str | None = None
    error_code: str | None = None


class BatchRunResult(BaseModel):
    """Aggregate outcome of a batch run."""

    period: datetime
    results: list[TenantUsageResult] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tracked(self) -> int:
        return sum(1 for result in self.results if result.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return len(self.results) - self.tracked

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed_tenant_ids(self) -> list[str]:
        return [result.tenant_id for result in self.results if not result.success]


__all__ = [
    "AppliedRates",
    "BatchRunResult",
    "RunAllRequest",
    "SnapshotRequest",
    "TenantUsageResult",
    "UsageDetails",
    "UsageRecord",
    "UsageRecordTable",
]
