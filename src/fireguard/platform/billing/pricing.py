"""
Pricing model.

Pure functions mapping a tenant's billing configuration and resource counts
to a monthly amount and a per-resource breakdown. No I/O.

Annual rates (per door, per building) are amortized over twelve months; the
inspector rate is already monthly. Each sub-cost is rounded to currency
precision on its own and the amount is the sum of the rounded sub-costs, so
a breakdown always adds up to its amount.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fireguard.platform.billing.exceptions import UnsupportedBillingModelError
from fireguard.platform.billing.money_utils import quantize_amount, quantize_unit_price
from fireguard.platform.tenant.models import BillingModel, ClientType, TenantBillingConfig

MONTHS_PER_YEAR = Decimal(12)
ZERO = Decimal("0")


class ResourceCounts(BaseModel):
    """Resource counts for one tenant at one point in time."""

    model_config = ConfigDict(frozen=True)

    doors: int = Field(0, ge=0)
    buildings: int = Field(0, ge=0)
    users: int = Field(0, ge=0)
    inspectors: int = Field(0, ge=0)
    inspections: int = Field(0, ge=0)


class PricingBreakdown(BaseModel):
    """Per-resource monthly sub-totals."""

    model_config = ConfigDict(frozen=True)

    door_cost: Decimal = ZERO
    building_cost: Decimal = ZERO
    inspector_cost: Decimal = ZERO
    unsupported: bool = Field(
        False, description="No pricing formula exists for the client type / billing model"
    )

    @property
    def total(self) -> Decimal:
        return self.door_cost + self.building_cost + self.inspector_cost


class PricingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    breakdown: PricingBreakdown


def is_supported(client_type: ClientType, billing_model: BillingModel | None) -> bool:
    if client_type == ClientType.CONTRACTOR:
        return True
    if client_type == ClientType.HOUSING_ASSOCIATION:
        return billing_model in (BillingModel.PER_DOOR, BillingModel.PER_BUILDING)
    return False


def ensure_supported(config: TenantBillingConfig) -> None:
    """Reject configurations the pricing model cannot bill."""
    if not is_supported(config.client_type, config.billing_model):
        raise UnsupportedBillingModelError(
            config.client_type.value, config.billing_model.value if config.billing_model else None
        )


def _monthly(count: int, annual_rate: Decimal) -> Decimal:
    return quantize_amount(Decimal(count) * annual_rate / MONTHS_PER_YEAR)


def calculate_breakdown(config: TenantBillingConfig, counts: ResourceCounts) -> PricingBreakdown:
    if config.client_type == ClientType.HOUSING_ASSOCIATION:
        if config.billing_model == BillingModel.PER_DOOR:
            return PricingBreakdown(door_cost=_monthly(counts.doors, config.price_per_door))
        if config.billing_model == BillingModel.PER_BUILDING:
            return PricingBreakdown(
                building_cost=_monthly(counts.buildings, config.price_per_building)
            )
    elif config.client_type == ClientType.CONTRACTOR:
        return PricingBreakdown(
            door_cost=_monthly(counts.doors, config.price_per_door),
            inspector_cost=quantize_amount(Decimal(counts.inspectors) * config.price_per_inspector),
        )
    return PricingBreakdown(unsupported=True)


def calculate_amount(config: TenantBillingConfig, counts: ResourceCounts) -> PricingResult:
    """Monthly amount and breakdown for one snapshot."""
    breakdown = calculate_breakdown(config, counts)
    return PricingResult(amount=breakdown.total, breakdown=breakdown)


# ==================== Line item presentation ====================


def describe_line_item(
    client_type: ClientType, billing_model: BillingModel | None, counts: ResourceCounts
) -> str:
    if client_type == ClientType.HOUSING_ASSOCIATION:
        if billing_model == BillingModel.PER_DOOR:
            return f"Fire Door Management - {counts.doors} doors"
        if billing_model == BillingModel.PER_BUILDING:
            return f"Building Fire Safety Management - {counts.buildings} buildings"
    elif client_type == ClientType.CONTRACTOR:
        return (
            f"Inspector Licenses ({counts.inspectors}) + "
            f"Door Data Storage ({counts.doors} doors)"
        )
    return "Fire Safety Management Services"


def line_item_quantity(
    client_type: ClientType, billing_model: BillingModel | None, counts: ResourceCounts
) -> int:
    if client_type == ClientType.HOUSING_ASSOCIATION:
        if billing_model == BillingModel.PER_DOOR:
            return counts.doors
        if billing_model == BillingModel.PER_BUILDING:
            return counts.buildings
    elif client_type == ClientType.CONTRACTOR:
        return counts.inspectors
    return 1


def line_item_unit_price(config: TenantBillingConfig) -> Decimal:
    """Monthly unit rate matching `line_item_quantity`."""
    if config.client_type == ClientType.HOUSING_ASSOCIATION:
        if config.billing_model == BillingModel.PER_DOOR:
            return quantize_unit_price(config.price_per_door / MONTHS_PER_YEAR)
        if config.billing_model == BillingModel.PER_BUILDING:
            return quantize_unit_price(config.price_per_building / MONTHS_PER_YEAR)
    elif config.client_type == ClientType.CONTRACTOR:
        return quantize_unit_price(config.price_per_inspector)
    return ZERO


__all__ = [
    "PricingBreakdown",
    "PricingResult",
    "ResourceCounts",
    "calculate_amount",
    "calculate_breakdown",
    "describe_line_item",
    "ensure_supported",
    "is_supported",
    "line_item_quantity",
    "line_item_unit_price",
]
