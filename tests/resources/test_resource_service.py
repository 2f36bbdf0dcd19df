"""
Tests for quota-guarded resource creation.
"""

from datetime import UTC, datetime

import pytest

from fireguard.platform.billing.exceptions import LimitExceededError
from fireguard.platform.resources.models import UserRole
from fireguard.platform.resources.service import ResourceService

pytestmark = pytest.mark.asyncio


class TestResourceService:
    async def test_create_door_and_building(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_doors=5, max_buildings=1)
        service = ResourceService(async_db_session)

        building = await service.create_building(tenant.id, "Tower A", address="1 High St")
        door = await service.create_door(tenant.id, "FD-001", building_id=building.id)

        assert door.building_id == building.id
        assert door.tenant_id == tenant.id

    async def test_building_limit(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_buildings=1)
        service = ResourceService(async_db_session)
        await service.create_building(tenant.id, "Tower A")

        with pytest.raises(LimitExceededError) as exc_info:
            await service.create_building(tenant.id, "Tower B")

        assert exc_info.value.message.startswith("You have reached your building limit of 1.")

    async def test_inspector_counts_against_both_limits(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_users=10, max_inspectors=1)
        service = ResourceService(async_db_session)

        inspector = await service.create_inspector(tenant.id, "first@example.com")
        assert inspector.role == UserRole.INSPECTOR

        with pytest.raises(LimitExceededError) as exc_info:
            await service.create_inspector(tenant.id, "second@example.com")
        assert exc_info.value.resource_type == "inspectors"

        # Non-inspector users are still allowed
        viewer = await service.create_user(tenant.id, "viewer@example.com")
        assert viewer.role == UserRole.VIEWER

    async def test_user_limit_blocks_inspectors(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_users=1, max_inspectors=5)
        service = ResourceService(async_db_session)
        await service.create_user(tenant.id, "admin@example.com", role=UserRole.ADMIN)

        with pytest.raises(LimitExceededError) as exc_info:
            await service.create_inspector(tenant.id, "inspector@example.com")

        assert exc_info.value.resource_type == "users"

    async def test_record_inspection(self, async_db_session, tenant_factory):
        tenant = await tenant_factory(max_doors=1)
        service = ResourceService(async_db_session)
        door = await service.create_door(tenant.id, "FD-001")

        when = datetime(2025, 1, 15, tzinfo=UTC)
        inspection = await service.record_inspection(tenant.id, door.id, inspection_date=when)

        assert inspection.door_id == door.id
        assert inspection.inspection_date == when
