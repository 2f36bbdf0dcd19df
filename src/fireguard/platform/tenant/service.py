"""
Tenant lookups, billing-configuration updates and per-tenant write locks.
"""

from typing import Any

import structlog
from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.exceptions import InvalidBillingConfigError, TenantNotFoundError
from fireguard.platform.billing.pricing import ensure_supported
from fireguard.platform.logging import log_audit_event
from fireguard.platform.tenant.models import Tenant, TenantBillingConfig

logger = structlog.get_logger(__name__)


class TenantService:
    """Tenant access for the billing engine."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def get_billing_config(self, tenant_id: str) -> TenantBillingConfig:
        tenant = await self.get_tenant(tenant_id)
        return TenantBillingConfig.model_validate(tenant)

    async def list_tenant_ids(self, active_only: bool = True) -> list[str]:
        stmt = select(Tenant.id).order_by(Tenant.created_at, Tenant.id)
        if active_only:
            stmt = stmt.where(Tenant.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_billing_config(
        self, tenant_id: str, changes: dict[str, Any], user_id: str | None = None
    ) -> TenantBillingConfig:
        """
        Validate and apply billing configuration changes.

        Invalid rates and unsupported client-type / billing-model combinations
        are rejected here so they never surface later during invoicing.
        """
        tenant = await self.get_tenant(tenant_id)
        current = TenantBillingConfig.model_validate(tenant).model_dump()
        try:
            config = TenantBillingConfig.model_validate({**current, **changes})
        except ValidationError as e:
            raise InvalidBillingConfigError(
                "Invalid billing configuration",
                validation_errors=[
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            ) from e
        ensure_supported(config)

        for field, value in config.model_dump().items():
            setattr(tenant, field, value)
        await self.db.commit()

        log_audit_event(
            "billing.config.updated",
            category="billing",
            tenant_id=tenant_id,
            resource_type="tenant",
            resource_id=tenant_id,
            user_id=user_id,
            changed_fields=sorted(changes),
        )
        return config

    # ==================== Per-tenant write locks ====================

    async def lock_for_quota(self, tenant_id: str) -> dict[str, int]:
        """
        Take the tenant's write lock for a quota-guarded create.

        Writing to the tenant row blocks concurrent creators for the same
        tenant until this transaction ends (row lock on PostgreSQL, database
        write lock on SQLite). Must be the first statement of the transaction.
        Returns the tenant's limits as read under the lock.
        """
        result = await self.db.execute(
            update(Tenant)
            .where(Tenant.id == tenant_id)
            .values(quota_version=Tenant.quota_version + 1)
            .returning(
                Tenant.max_doors, Tenant.max_buildings, Tenant.max_users, Tenant.max_inspectors
            )
            .execution_options(synchronize_session=False)
        )
        limits = result.mappings().one_or_none()
        if limits is None:
            raise TenantNotFoundError(tenant_id)
        return dict(limits)

    async def allocate_invoice_sequence(self, tenant_id: str) -> int:
        """Increment and return the tenant's invoice sequence under its row lock."""
        result = await self.db.execute(
            update(Tenant)
            .where(Tenant.id == tenant_id)
            .values(invoice_sequence=Tenant.invoice_sequence + 1)
            .returning(Tenant.invoice_sequence)
            .execution_options(synchronize_session=False)
        )
        sequence = result.scalar_one_or_none()
        if sequence is None:
            raise TenantNotFoundError(tenant_id)
        logger.debug("tenant.invoice_sequence.allocated", tenant_id=tenant_id, sequence=sequence)
        return int(sequence)
