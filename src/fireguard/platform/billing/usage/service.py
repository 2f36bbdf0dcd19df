"""
Usage ledger.

Writes one priced snapshot per tenant per calendar month. Snapshots are
idempotent upserts; once a month has been invoiced its record is read-only.
"""

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import Insert, select
from sqlalchemy.dialects.postgresql import Insert as PgInsert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import Insert as SqliteInsert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.exceptions import InvoicedPeriodReadOnlyError, UsageTrackingError
from fireguard.platform.billing.metrics import BillingMetrics, get_billing_metrics
from fireguard.platform.billing.pricing import calculate_amount
from fireguard.platform.billing.usage.counter import ResourceCounter
from fireguard.platform.billing.usage.models import (
    AppliedRates,
    UsageDetails,
    UsageRecord,
    UsageRecordTable,
)
from fireguard.platform.billing.usage.periods import normalize_period, period_key
from fireguard.platform.db import generate_id, utcnow
from fireguard.platform.tenant.models import TenantBillingConfig
from fireguard.platform.tenant.service import TenantService

logger = structlog.get_logger(__name__)

_UPSERT_COLUMNS = (
    "door_count",
    "building_count",
    "inspector_count",
    "inspection_count",
    "calculated_amount",
    "usage_details",
    "updated_at",
)


class UsageLedger:
    """Service for monthly usage snapshots."""

    def __init__(
        self,
        db: AsyncSession,
        counter: ResourceCounter | None = None,
        metrics: BillingMetrics | None = None,
    ) -> None:
        self.db = db
        self.counter = counter or ResourceCounter(db)
        self.tenants = TenantService(db)
        self.metrics = metrics or get_billing_metrics()

    async def snapshot_usage(self, tenant_id: str, period: datetime | None = None) -> UsageRecord:
        """
        Count, price and record a tenant's usage for the month containing ``period``.

        Re-running for the same month overwrites the previous snapshot until
        the month is invoiced; afterwards `InvoicedPeriodReadOnlyError` is
        raised and the stored record is left untouched.
        """
        period_start = normalize_period(period)
        tenant = await self.tenants.get_tenant(tenant_id)
        config = TenantBillingConfig.model_validate(tenant)

        existing = await self._get_row(tenant_id, period_start)
        if existing is not None and existing.invoiced:
            raise InvoicedPeriodReadOnlyError(
                tenant_id, period_key(period_start), existing.invoice_id
            )

        # Standing resources are current totals; only inspections are windowed
        counts = await self.counter.count_resources(tenant_id, period_start=period_start)
        pricing = calculate_amount(config, counts)
        if pricing.breakdown.unsupported:
            logger.warning(
                "usage.snapshot.unsupported_billing_model",
                tenant_id=tenant_id,
                client_type=config.client_type.value,
                billing_model=config.billing_model.value if config.billing_model else None,
            )

        details = UsageDetails(
            doors=counts.doors,
            buildings=counts.buildings,
            inspectors=counts.inspectors,
            inspections=counts.inspections,
            client_type=config.client_type,
            billing_model=config.billing_model,
            rates=AppliedRates.from_config(config),
            breakdown=pricing.breakdown,
        )
        now = utcnow()
        values: dict[str, Any] = {
            "id": generate_id(),
            "tenant_id": tenant_id,
            "period": period_start,
            "door_count": counts.doors,
            "building_count": counts.buildings,
            "inspector_count": counts.inspectors,
            "inspection_count": counts.inspections,
            "calculated_amount": pricing.amount,
            "usage_details": details.model_dump(mode="json"),
            "invoiced": False,
            "created_at": now,
            "updated_at": now,
        }
        await self.db.execute(self._upsert_statement(values))

        row = await self._get_row(tenant_id, period_start, refresh=True)
        if row is None:
            await self.db.rollback()
            raise UsageTrackingError(
                "Usage record missing after upsert",
                context={"tenant_id": tenant_id, "period": period_key(period_start)},
            )
        if row.invoiced:
            # The invoicer claimed the month between our check and our write
            invoice_id = row.invoice_id
            await self.db.rollback()
            raise InvoicedPeriodReadOnlyError(tenant_id, period_key(period_start), invoice_id)

        record = UsageRecord.model_validate(row)
        await self.db.commit()

        self.metrics.record_usage_snapshot(tenant_id, record.calculated_amount)
        logger.info(
            "usage.snapshot.recorded",
            tenant_id=tenant_id,
            period=period_key(period_start),
            doors=counts.doors,
            buildings=counts.buildings,
            inspectors=counts.inspectors,
            inspections=counts.inspections,
            amount=str(record.calculated_amount),
        )
        return record

    async def get_usage_record(self, tenant_id: str, period: datetime) -> UsageRecord | None:
        row = await self._get_row(tenant_id, normalize_period(period))
        return UsageRecord.model_validate(row) if row is not None else None

    async def list_unbilled_records(self, tenant_id: str) -> list[UsageRecord]:
        """Unbilled records for a tenant, oldest first."""
        await self.tenants.get_tenant(tenant_id)
        result = await self.db.execute(
            select(UsageRecordTable)
            .where(
                UsageRecordTable.tenant_id == tenant_id,
                UsageRecordTable.invoiced.is_(False),
            )
            .order_by(UsageRecordTable.period.asc())
        )
        return [UsageRecord.model_validate(row) for row in result.scalars().all()]

    def _upsert_statement(self, values: dict[str, Any]) -> Insert:
        dialect = self.db.get_bind().dialect.name
        stmt: PgInsert | SqliteInsert
        if dialect == "postgresql":
            stmt = pg_insert(UsageRecordTable).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite_insert(UsageRecordTable).values(**values)
        else:
            raise UsageTrackingError(
                f"Usage snapshots are not supported on the {dialect} dialect",
                context={"dialect": dialect},
            )
        return stmt.on_conflict_do_update(
            index_elements=["tenant_id", "period"],
            set_={column: stmt.excluded[column] for column in _UPSERT_COLUMNS},
            where=UsageRecordTable.invoiced.is_(False),
        )

    async def _get_row(
        self, tenant_id: str, period_start: datetime, refresh: bool = False
    ) -> UsageRecordTable | None:
        stmt = select(UsageRecordTable).where(
            UsageRecordTable.tenant_id == tenant_id,
            UsageRecordTable.period == period_start,
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
