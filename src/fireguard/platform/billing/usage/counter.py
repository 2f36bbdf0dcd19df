"""
Resource counting.

Doors, buildings, users and inspectors are point-in-time totals. Inspections
are the only windowed count: those dated within the billing month.
"""

from datetime import UTC, datetime

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.pricing import ResourceCounts
from fireguard.platform.billing.usage.periods import next_period, normalize_period
from fireguard.platform.db import ensure_utc
from fireguard.platform.resources.models import Building, FireDoor, Inspection, User, UserRole


class ResourceCounter:
    """Counts a tenant's metered resources."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def count_resources(
        self,
        tenant_id: str,
        as_of: datetime | None = None,
        period_start: datetime | None = None,
    ) -> ResourceCounts:
        cutoff = ensure_utc(as_of) if as_of is not None else datetime.now(UTC)

        doors = await self._count(
            select(func.count(FireDoor.id)).where(
                FireDoor.tenant_id == tenant_id, FireDoor.created_at <= cutoff
            )
        )
        buildings = await self._count(
            select(func.count(Building.id)).where(
                Building.tenant_id == tenant_id, Building.created_at <= cutoff
            )
        )
        users = await self._count(
            select(func.count(User.id)).where(User.tenant_id == tenant_id, User.created_at <= cutoff)
        )
        inspectors = await self._count(
            select(func.count(User.id)).where(
                User.tenant_id == tenant_id,
                User.role == UserRole.INSPECTOR,
                User.created_at <= cutoff,
            )
        )

        inspections = 0
        if period_start is not None:
            window_start = normalize_period(period_start)
            inspections = await self._count(
                select(func.count(Inspection.id)).where(
                    Inspection.tenant_id == tenant_id,
                    Inspection.inspection_date >= window_start,
                    Inspection.inspection_date < next_period(window_start),
                )
            )

        return ResourceCounts(
            doors=doors,
            buildings=buildings,
            users=users,
            inspectors=inspectors,
            inspections=inspections,
        )

    async def count_one(self, tenant_id: str, resource_type: str) -> int:
        """Current total for a single quota-governed resource type."""
        stmt: Select[tuple[int]]
        if resource_type == "doors":
            stmt = select(func.count(FireDoor.id)).where(FireDoor.tenant_id == tenant_id)
        elif resource_type == "buildings":
            stmt = select(func.count(Building.id)).where(Building.tenant_id == tenant_id)
        elif resource_type == "users":
            stmt = select(func.count(User.id)).where(User.tenant_id == tenant_id)
        elif resource_type == "inspectors":
            stmt = select(func.count(User.id)).where(
                User.tenant_id == tenant_id, User.role == UserRole.INSPECTOR
            )
        else:
            raise ValueError(f"Unknown resource type: {resource_type}")
        return await self._count(stmt)

    async def _count(self, stmt: Select[tuple[int]]) -> int:
        result = await self.db.execute(stmt)
        return int(result.scalar_one() or 0)
