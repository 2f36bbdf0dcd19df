"""
Quota-guarded creation of metered resources.

Every create goes through `QuotaEnforcer.create_within_limit`, so the limit
check and the insert share one transaction.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.limits.schemas import ResourceType
from fireguard.platform.billing.limits.service import QuotaEnforcer
from fireguard.platform.db import utcnow
from fireguard.platform.resources.models import Building, FireDoor, Inspection, User, UserRole


class ResourceService:
    """Creates doors, buildings, users and inspections for a tenant."""

    def __init__(self, db: AsyncSession, enforcer: QuotaEnforcer | None = None) -> None:
        self.db = db
        self.enforcer = enforcer or QuotaEnforcer(db)

    async def create_door(
        self,
        tenant_id: str,
        door_number: str,
        building_id: str | None = None,
        location: str | None = None,
    ) -> FireDoor:
        return await self.enforcer.create_within_limit(
            tenant_id,
            ResourceType.DOORS,
            lambda: FireDoor(door_number=door_number, building_id=building_id, location=location),
        )

    async def create_building(
        self, tenant_id: str, name: str, address: str | None = None
    ) -> Building:
        return await self.enforcer.create_within_limit(
            tenant_id, ResourceType.BUILDINGS, lambda: Building(name=name, address=address)
        )

    async def create_user(
        self,
        tenant_id: str,
        email: str,
        name: str | None = None,
        role: UserRole = UserRole.VIEWER,
    ) -> User:
        """Create a user; inspectors also count against the inspector limit."""
        also_check = (ResourceType.INSPECTORS,) if role == UserRole.INSPECTOR else ()
        return await self.enforcer.create_within_limit(
            tenant_id,
            ResourceType.USERS,
            lambda: User(email=email, name=name, role=role),
            also_check=also_check,
        )

    async def create_inspector(self, tenant_id: str, email: str, name: str | None = None) -> User:
        return await self.create_user(tenant_id, email, name=name, role=UserRole.INSPECTOR)

    async def record_inspection(
        self,
        tenant_id: str,
        door_id: str,
        inspector_id: str | None = None,
        inspection_date: datetime | None = None,
    ) -> Inspection:
        """Inspections are metered per month but have no quota."""
        inspection = Inspection(
            tenant_id=tenant_id,
            door_id=door_id,
            inspector_id=inspector_id,
            inspection_date=inspection_date or utcnow(),
        )
        self.db.add(inspection)
        await self.db.commit()
        return inspection


__all__ = ["ResourceService"]
