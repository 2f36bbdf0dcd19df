"""
Global pytest configuration and fixtures for the billing engine tests.

Every test that touches the database gets its own file-backed SQLite
database so separate sessions (batch runner, concurrent creators) share one
schema.
"""

import os
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime
from decimal import Decimal
from itertools import count
from typing import Any

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("OBSERVABILITY__LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from fireguard.platform.billing.config import set_billing_config
from fireguard.platform.billing.metrics import set_billing_metrics
from fireguard.platform.billing.money_utils import reset_money_handler
from fireguard.platform.db import create_all_tables_async, get_async_session, set_async_session_maker
from fireguard.platform.resources.models import Building, FireDoor, Inspection, User, UserRole
from fireguard.platform.tenant.models import BillingModel, ClientType, Tenant

# Resources default to a creation date before any billing period used in tests
LONG_AGO = datetime(2024, 1, 1, tzinfo=UTC)

_subdomains = count(1)


@pytest.fixture(autouse=True)
def reset_billing_globals():
    """Rebuild configuration-derived singletons for each test."""
    set_billing_config(None)
    set_billing_metrics(None)
    reset_money_handler()
    yield
    set_billing_config(None)
    set_billing_metrics(None)
    reset_money_handler()


# ============================================================================
# Database
# ============================================================================


@pytest_asyncio.fixture
async def async_db_engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing.db'}")
    await create_all_tables_async(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=async_db_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def async_db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


# ============================================================================
# Factories
# ============================================================================


@pytest_asyncio.fixture
async def tenant_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Tenant]]:
    """
    Factory for persisted tenants.

    Example:
        tenant = await tenant_factory(subdomain="acme", max_doors=100)
    """

    async def _create(**overrides: Any) -> Tenant:
        number = next(_subdomains)
        values: dict[str, Any] = {
            "name": f"Tenant {number}",
            "subdomain": f"tenant{number}",
            "client_type": ClientType.HOUSING_ASSOCIATION,
            "billing_model": BillingModel.PER_DOOR,
            "price_per_door": Decimal("12.00"),
            "price_per_building": Decimal("0"),
            "price_per_inspector": Decimal("0"),
            "max_doors": 1000,
            "max_buildings": 100,
            "max_users": 50,
            "max_inspectors": 10,
        }
        values.update(overrides)
        tenant = Tenant(**values)
        async with session_factory() as session:
            session.add(tenant)
            await session.commit()
        return tenant

    return _create


@pytest_asyncio.fixture
async def door_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[list[FireDoor]]]:
    """Insert doors directly, bypassing quota checks."""

    async def _create(tenant_id: str, n: int = 1, created_at: datetime = LONG_AGO) -> list[FireDoor]:
        doors = [
            FireDoor(
                tenant_id=tenant_id,
                door_number=f"FD-{i:04d}",
                created_at=created_at,
                updated_at=created_at,
            )
            for i in range(n)
        ]
        async with session_factory() as session:
            session.add_all(doors)
            await session.commit()
        return doors

    return _create


@pytest_asyncio.fixture
async def building_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[list[Building]]]:
    async def _create(
        tenant_id: str, n: int = 1, created_at: datetime = LONG_AGO
    ) -> list[Building]:
        buildings = [
            Building(
                tenant_id=tenant_id,
                name=f"Block {i}",
                created_at=created_at,
                updated_at=created_at,
            )
            for i in range(n)
        ]
        async with session_factory() as session:
            session.add_all(buildings)
            await session.commit()
        return buildings

    return _create


@pytest_asyncio.fixture
async def user_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[list[User]]]:
    async def _create(
        tenant_id: str,
        n: int = 1,
        role: UserRole = UserRole.VIEWER,
        created_at: datetime = LONG_AGO,
    ) -> list[User]:
        users = [
            User(
                tenant_id=tenant_id,
                email=f"{role.value.lower()}{i}-{next(_subdomains)}@example.com",
                role=role,
                created_at=created_at,
                updated_at=created_at,
            )
            for i in range(n)
        ]
        async with session_factory() as session:
            session.add_all(users)
            await session.commit()
        return users

    return _create


@pytest_asyncio.fixture
async def inspection_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Inspection]]:
    async def _create(tenant_id: str, door_id: str, inspection_date: datetime) -> Inspection:
        inspection = Inspection(
            tenant_id=tenant_id, door_id=door_id, inspection_date=inspection_date
        )
        async with session_factory() as session:
            session.add(inspection)
            await session.commit()
        return inspection

    return _create


# ============================================================================
# API
# ============================================================================


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """HTTP client bound to an app using the per-test database."""
    from fireguard.platform.main import create_app

    app = create_app()

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = _override_session
    set_async_session_maker(session_factory)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        set_async_session_maker(None)
