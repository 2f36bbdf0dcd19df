"""Quota schemas."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ResourceType(str, Enum):
    """Quota-governed resource types."""

    DOORS = "doors"
    BUILDINGS = "buildings"
    USERS = "users"
    INSPECTORS = "inspectors"

    @property
    def limit_field(self) -> str:
        """Tenant column holding the limit for this resource."""
        return f"max_{self.value}"


class QuotaCheckResult(BaseModel):
    """Usage of one resource against its limit."""

    model_config = ConfigDict(frozen=True)

    resource_type: ResourceType
    current: int = Field(ge=0)
    limit: int = Field(ge=0)
    percentage: float = Field(ge=0, description="current / limit as a percentage")
    remaining: int = Field(ge=0, description="Creates still allowed")
    is_near_limit: bool
    is_at_limit: bool

    @classmethod
    def evaluate(
        cls,
        resource_type: ResourceType,
        current: int,
        limit: int,
        near_limit_threshold: Decimal,
    ) -> "QuotaCheckResult":
        """Derive the quota flags; a zero limit counts as full."""
        if limit > 0:
            percentage = float(Decimal(current) * 100 / Decimal(limit))
        else:
            percentage = 100.0
        is_at_limit = current >= limit
        return cls(
            resource_type=resource_type,
            current=current,
            limit=limit,
            percentage=round(percentage, 2),
            remaining=max(limit - current, 0),
            is_near_limit=is_at_limit or Decimal(current) >= Decimal(limit) * near_limit_threshold,
            is_at_limit=is_at_limit,
        )


class TenantLimits(BaseModel):
    """All quota checks for a tenant."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    doors: QuotaCheckResult
    buildings: QuotaCheckResult
    users: QuotaCheckResult
    inspectors: QuotaCheckResult


__all__ = ["QuotaCheckResult", "ResourceType", "TenantLimits"]
