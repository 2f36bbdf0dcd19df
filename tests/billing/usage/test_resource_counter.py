"""
Tests for ResourceCounter.
"""

from datetime import UTC, datetime

import pytest

from fireguard.platform.billing.usage.counter import ResourceCounter
from fireguard.platform.resources.models import UserRole

pytestmark = pytest.mark.asyncio


class TestCountResources:
    async def test_counts_by_type(
        self, async_db_session, tenant_factory, door_factory, building_factory, user_factory
    ):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 4)
        await building_factory(tenant.id, 2)
        await user_factory(tenant.id, 3, role=UserRole.VIEWER)
        await user_factory(tenant.id, 2, role=UserRole.INSPECTOR)

        counts = await ResourceCounter(async_db_session).count_resources(tenant.id)

        assert counts.doors == 4
        assert counts.buildings == 2
        assert counts.users == 5
        assert counts.inspectors == 2
        assert counts.inspections == 0

    async def test_as_of_excludes_later_resources(self, async_db_session, tenant_factory, door_factory):
        tenant = await tenant_factory()
        await door_factory(tenant.id, 10)
        await door_factory(tenant.id, 5, created_at=datetime(2025, 3, 1, tzinfo=UTC))

        counter = ResourceCounter(async_db_session)
        february = await counter.count_resources(
            tenant.id, as_of=datetime(2025, 2, 28, 23, 59, 59, tzinfo=UTC)
        )
        march = await counter.count_resources(tenant.id, as_of=datetime(2025, 3, 31, tzinfo=UTC))

        assert february.doors == 10
        assert march.doors == 15

    async def test_inspections_windowed_to_month(
        self, async_db_session, tenant_factory, door_factory, inspection_factory
    ):
        tenant = await tenant_factory()
        (door,) = await door_factory(tenant.id, 1)
        for when in (
            datetime(2024, 12, 31, 23, 59, tzinfo=UTC),
            datetime(2025, 1, 1, tzinfo=UTC),
            datetime(2025, 1, 31, 23, 59, tzinfo=UTC),
            datetime(2025, 2, 1, tzinfo=UTC),
        ):
            await inspection_factory(tenant.id, door.id, when)

        counts = await ResourceCounter(async_db_session).count_resources(
            tenant.id, period_start=datetime(2025, 1, 20, tzinfo=UTC)
        )

        assert counts.inspections == 2

    async def test_other_tenants_ignored(self, async_db_session, tenant_factory, door_factory):
        tenant = await tenant_factory()
        other = await tenant_factory()
        await door_factory(other.id, 7)

        counts = await ResourceCounter(async_db_session).count_resources(tenant.id)

        assert counts.doors == 0


class TestCountOne:
    async def test_inspectors_are_users(self, async_db_session, tenant_factory, user_factory):
        tenant = await tenant_factory()
        await user_factory(tenant.id, 2, role=UserRole.ADMIN)
        await user_factory(tenant.id, 1, role=UserRole.INSPECTOR)

        counter = ResourceCounter(async_db_session)

        assert await counter.count_one(tenant.id, "users") == 3
        assert await counter.count_one(tenant.id, "inspectors") == 1

    async def test_unknown_type(self, async_db_session, tenant_factory):
        tenant = await tenant_factory()

        with pytest.raises(ValueError, match="Unknown resource type"):
            await ResourceCounter(async_db_session).count_one(tenant.id, "widgets")
