"""
Quota enforcement.

Read-only checks report usage against each tenant limit; guarded creates run
the check and the insert in one transaction so concurrent creators cannot
overshoot a limit.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.config import get_billing_config
from fireguard.platform.billing.exceptions import LimitExceededError
from fireguard.platform.billing.limits.schemas import QuotaCheckResult, ResourceType, TenantLimits
from fireguard.platform.billing.metrics import BillingMetrics, get_billing_metrics
from fireguard.platform.billing.usage.counter import ResourceCounter
from fireguard.platform.db import Base
from fireguard.platform.tenant.models import Tenant
from fireguard.platform.tenant.service import TenantService

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class QuotaEnforcer:
    """Checks and enforces per-tenant resource quotas."""

    def __init__(
        self,
        db: AsyncSession,
        counter: ResourceCounter | None = None,
        near_limit_threshold: Decimal | None = None,
        metrics: BillingMetrics | None = None,
    ) -> None:
        self.db = db
        self.counter = counter or ResourceCounter(db)
        self.tenants = TenantService(db)
        self.near_limit_threshold = (
            near_limit_threshold
            if near_limit_threshold is not None
            else get_billing_config().quota.near_limit_threshold
        )
        self.metrics = metrics or get_billing_metrics()

    async def check_limit(
        self, resource_type: ResourceType | str, tenant_id: str
    ) -> QuotaCheckResult:
        """
        Report usage of one resource, raising when no further create is allowed.

        Raises:
            TenantNotFoundError: Unknown tenant
            LimitExceededError: ``current >= limit``
        """
        resource_type = ResourceType(resource_type)
        tenant = await self.tenants.get_tenant(tenant_id)
        result = await self._evaluate(tenant, resource_type)
        if result.is_at_limit:
            raise LimitExceededError(resource_type.value, result.current, result.limit)
        return result

    async def get_all_limits(self, tenant_id: str) -> TenantLimits:
        tenant = await self.tenants.get_tenant(tenant_id)
        return TenantLimits(
            tenant_id=tenant_id,
            doors=await self._evaluate(tenant, ResourceType.DOORS),
            buildings=await self._evaluate(tenant, ResourceType.BUILDINGS),
            users=await self._evaluate(tenant, ResourceType.USERS),
            inspectors=await self._evaluate(tenant, ResourceType.INSPECTORS),
        )

    async def create_within_limit(
        self,
        tenant_id: str,
        resource_type: ResourceType | str,
        build: Callable[[], ModelT],
        also_check: Sequence[ResourceType | str] = (),
    ) -> ModelT:
        """
        Insert the row produced by ``build`` only if every named quota allows it.

        The tenant lock is taken before anything is counted, so the counts
        seen here cannot change until this transaction commits or rolls back.
        Nothing is inserted when a limit is reached.
        """
        checked = [ResourceType(resource_type), *(ResourceType(rt) for rt in also_check)]
        try:
            limits = await self.tenants.lock_for_quota(tenant_id)
            for rt in checked:
                limit = limits[rt.limit_field]
                current = await self.counter.count_one(tenant_id, rt.value)
                if current >= limit:
                    raise LimitExceededError(rt.value, current, limit)

            instance = build()
            instance.tenant_id = tenant_id  # type: ignore[attr-defined]
            self.db.add(instance)
            await self.db.flush()
            await self.db.commit()
        except LimitExceededError as e:
            await self.db.rollback()
            self.metrics.record_quota_rejected(tenant_id, e.resource_type)
            logger.info(
                "quota.create.rejected",
                tenant_id=tenant_id,
                resource_type=e.resource_type,
                current=e.current,
                limit=e.limit,
            )
            raise
        except Exception:
            await self.db.rollback()
            raise

        logger.debug("quota.create.accepted", tenant_id=tenant_id, resource_type=checked[0].value)
        return instance

    async def _evaluate(self, tenant: Tenant, resource_type: ResourceType) -> QuotaCheckResult:
        current = await self.counter.count_one(tenant.id, resource_type.value)
        return QuotaCheckResult.evaluate(
            resource_type,
            current=current,
            limit=getattr(tenant, resource_type.limit_field),
            near_limit_threshold=self.near_limit_threshold,
        )


__all__ = ["QuotaEnforcer"]
