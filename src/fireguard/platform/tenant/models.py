"""
Tenant aggregate and its billing configuration.

The tenant row owns pricing, quotas and the per-tenant counters used to
serialize invoice numbering and quota-guarded creates.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from fireguard.platform.db import Base, TimestampMixin, generate_id


class ClientType(str, Enum):
    """Kind of customer; selects the pricing formula family."""

    HOUSING_ASSOCIATION = "HOUSING_ASSOCIATION"
    CONTRACTOR = "CONTRACTOR"


class BillingModel(str, Enum):
    """Pricing basis for housing associations."""

    PER_DOOR = "PER_DOOR"
    PER_BUILDING = "PER_BUILDING"


class BillingCycle(str, Enum):
    """Informational only; usage is always metered monthly."""

    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"


class Tenant(Base, TimestampMixin):
    """SQLAlchemy table for tenants."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Pricing
    client_type: Mapped[ClientType] = mapped_column(
        SAEnum(ClientType, native_enum=False, length=30),
        nullable=False,
        default=ClientType.HOUSING_ASSOCIATION,
    )
    billing_model: Mapped[BillingModel | None] = mapped_column(
        SAEnum(BillingModel, native_enum=False, length=30),
        nullable=True,
        default=BillingModel.PER_DOOR,
    )
    price_per_door: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )  # annual
    price_per_building: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )  # annual
    price_per_inspector: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )  # monthly
    billing_cycle: Mapped[BillingCycle] = mapped_column(
        SAEnum(BillingCycle, native_enum=False, length=20),
        nullable=False,
        default=BillingCycle.MONTHLY,
    )
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    # Quotas (0 means none allowed)
    max_doors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_buildings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_users: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_inspectors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Per-tenant serialization counters
    invoice_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quota_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def tenant_code(self) -> str:
        return self.subdomain.upper()

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id!r}, subdomain={self.subdomain!r})>"


class TenantBillingConfig(BaseModel):
    """Validated billing view of a tenant."""

    model_config = ConfigDict(from_attributes=True)

    client_type: ClientType = Field(description="Client type")
    billing_model: BillingModel | None = Field(
        None, description="Billing model (housing associations only)"
    )
    price_per_door: Decimal = Field(Decimal("0"), ge=0, description="Annual price per door")
    price_per_building: Decimal = Field(
        Decimal("0"), ge=0, description="Annual price per building"
    )
    price_per_inspector: Decimal = Field(
        Decimal("0"), ge=0, description="Monthly price per inspector"
    )
    billing_cycle: BillingCycle = Field(BillingCycle.MONTHLY, description="Billing cycle")
    tax_rate: Decimal | None = Field(None, ge=0, le=1, description="Tax rate override")
    max_doors: int = Field(0, ge=0)
    max_buildings: int = Field(0, ge=0)
    max_users: int = Field(0, ge=0)
    max_inspectors: int = Field(0, ge=0)


__all__ = [
    "BillingCycle",
    "BillingModel",
    "ClientType",
    "Tenant",
    "TenantBillingConfig",
]
