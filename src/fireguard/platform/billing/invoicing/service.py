"""
Invoice generation and lifecycle.

Issuing an invoice, allocating its number and marking the covered usage
records invoiced happen in one transaction holding the tenant's row lock.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.config import BillingConfig, get_billing_config
from fireguard.platform.billing.exceptions import (
    InvalidInvoiceStatusError,
    InvoiceError,
    InvoiceNotFoundError,
    NoUnbilledUsageError,
)
from fireguard.platform.billing.invoicing.models import (
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    InvoiceTable,
)
from fireguard.platform.billing.metrics import BillingMetrics, get_billing_metrics
from fireguard.platform.billing.money_utils import (
    format_period,
    get_money_handler,
    quantize_amount,
)
from fireguard.platform.billing.pricing import (
    describe_line_item,
    line_item_quantity,
    line_item_unit_price,
)
from fireguard.platform.billing.usage.models import UsageRecord, UsageRecordTable
from fireguard.platform.db import ensure_utc, generate_id, utcnow
from fireguard.platform.logging import log_audit_event
from fireguard.platform.tenant.service import TenantService

logger = structlog.get_logger(__name__)

PAYABLE_STATUSES = (InvoiceStatus.ISSUED, InvoiceStatus.OVERDUE)


def build_line_item(record: UsageRecord) -> InvoiceLineItem:
    """Line item derived from the rates and counts stored on the usage record."""
    details = record.usage_details
    counts = details.counts
    return InvoiceLineItem(
        usage_record_id=record.id,
        period=record.period,
        period_label=format_period(record.period),
        description=describe_line_item(details.client_type, details.billing_model, counts),
        quantity=line_item_quantity(details.client_type, details.billing_model, counts),
        unit_price=line_item_unit_price(details.billing_config()),
        amount=record.calculated_amount,
    )


class InvoiceGenerator:
    """Service for issuing invoices from the usage ledger."""

    def __init__(
        self,
        db: AsyncSession,
        config: BillingConfig | None = None,
        metrics: BillingMetrics | None = None,
    ) -> None:
        self.db = db
        self.config = config or get_billing_config()
        self.tenants = TenantService(db)
        self.metrics = metrics or get_billing_metrics()

    async def generate_invoice(
        self,
        tenant_id: str,
        billing_period_start: datetime,
        billing_period_end: datetime,
        due_in_days: int | None = None,
        issue_date: datetime | None = None,
        user_id: str | None = None,
    ) -> Invoice:
        """
        Invoice every unbilled usage record with a period in the inclusive range.

        Raises:
            NoUnbilledUsageError: Nothing to bill in the range
            TenantNotFoundError: Unknown tenant
        """
        start = ensure_utc(billing_period_start)
        end = ensure_utc(billing_period_end)
        if start > end:
            raise InvoiceError(
                "billing_period_start must not be after billing_period_end",
                context={
                    "billing_period_start": start.isoformat(),
                    "billing_period_end": end.isoformat(),
                },
            )
        if due_in_days is None:
            due_in_days = self.config.invoice.due_days_default

        try:
            # Lock first: numbering and record selection are serialized per tenant
            sequence = await self.tenants.allocate_invoice_sequence(tenant_id)
            tenant = await self.tenants.get_tenant(tenant_id)

            result = await self.db.execute(
                select(UsageRecordTable)
                .where(
                    UsageRecordTable.tenant_id == tenant_id,
                    UsageRecordTable.invoiced.is_(False),
                    UsageRecordTable.period >= start,
                    UsageRecordTable.period <= end,
                )
                .order_by(UsageRecordTable.period.asc())
                # Row locks hold off concurrent snapshots until the records are marked
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            records = [UsageRecord.model_validate(row) for row in result.scalars().all()]
            if not records:
                raise NoUnbilledUsageError(tenant_id, start.isoformat(), end.isoformat())

            subtotal = quantize_amount(
                sum((record.calculated_amount for record in records), Decimal("0"))
            )
            tax_rate = (
                tenant.tax_rate if tenant.tax_rate is not None else self.config.tax.default_tax_rate
            )
            tax_amount = quantize_amount(subtotal * tax_rate)
            items = [build_line_item(record) for record in records]

            issued_at = ensure_utc(issue_date) if issue_date is not None else utcnow()
            invoice = InvoiceTable(
                id=generate_id(),
                tenant_id=tenant_id,
                invoice_number=self.config.invoice.format_number(tenant.tenant_code, sequence),
                subtotal=subtotal,
                tax_rate=tax_rate,
                tax_amount=tax_amount,
                amount=subtotal + tax_amount,
                currency=self.config.currency.currency,
                status=InvoiceStatus.ISSUED,
                billing_period_start=start,
                billing_period_end=end,
                issue_date=issued_at,
                due_date=issued_at + timedelta(days=due_in_days),
                items=[item.model_dump(mode="json") for item in items],
            )
            self.db.add(invoice)
            await self.db.flush()

            record_ids = [record.id for record in records]
            marked = await self.db.execute(
                update(UsageRecordTable)
                .where(
                    UsageRecordTable.id.in_(record_ids),
                    UsageRecordTable.tenant_id == tenant_id,
                    UsageRecordTable.invoiced.is_(False),
                )
                .values(invoiced=True, invoice_id=invoice.id, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if marked.rowcount != len(record_ids):
                raise InvoiceError(
                    "Usage records changed while the invoice was being generated",
                    context={
                        "tenant_id": tenant_id,
                        "expected": len(record_ids),
                        "marked": marked.rowcount,
                    },
                    recovery_hint="Retry invoice generation",
                )

            issued = Invoice.model_validate(invoice)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        handler = get_money_handler()
        self.metrics.record_invoice_issued(
            tenant_id,
            handler.money_to_minor_units(handler.create_money(issued.amount, issued.currency)),
            issued.currency,
        )
        log_audit_event(
            "billing.invoice.issued",
            category="billing",
            tenant_id=tenant_id,
            resource_type="invoice",
            resource_id=issued.id,
            user_id=user_id,
            invoice_number=issued.invoice_number,
            amount=str(issued.amount),
            usage_record_ids=record_ids,
        )
        logger.info(
            "invoice.generated",
            tenant_id=tenant_id,
            invoice_number=issued.invoice_number,
            records=len(record_ids),
            subtotal=str(issued.subtotal),
            tax_amount=str(issued.tax_amount),
            amount=str(issued.amount),
        )
        return issued

    async def mark_invoice_as_paid(
        self,
        invoice_id: str,
        paid_date: datetime | None = None,
        tenant_id: str | None = None,
        user_id: str | None = None,
    ) -> Invoice:
        """Record payment of an issued or overdue invoice."""
        row = await self._get_row(invoice_id, tenant_id)
        paid_at = ensure_utc(paid_date) if paid_date is not None else utcnow()

        result = await self.db.execute(
            update(InvoiceTable)
            .where(InvoiceTable.id == invoice_id, InvoiceTable.status.in_(PAYABLE_STATUSES))
            .values(status=InvoiceStatus.PAID, paid_date=paid_at, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            row = await self._get_row(invoice_id, tenant_id, refresh=True)
            raise InvalidInvoiceStatusError(
                f"Invoice {row.invoice_number} cannot be paid in status {row.status.value}",
                current_status=row.status.value,
                requested_status=InvoiceStatus.PAID.value,
            )
        await self.db.commit()

        row = await self._get_row(invoice_id, tenant_id, refresh=True)
        self.metrics.record_invoice_paid(row.tenant_id, row.id)
        log_audit_event(
            "billing.invoice.paid",
            category="billing",
            tenant_id=row.tenant_id,
            resource_type="invoice",
            resource_id=row.id,
            user_id=user_id,
            invoice_number=row.invoice_number,
        )
        return Invoice.model_validate(row)

    async def check_overdue_invoices(
        self, now: datetime | None = None, tenant_id: str | None = None
    ) -> int:
        """Move issued invoices past their due date to OVERDUE. Returns the number moved."""
        cutoff = ensure_utc(now) if now is not None else utcnow()
        stmt = (
            update(InvoiceTable)
            .where(InvoiceTable.status == InvoiceStatus.ISSUED, InvoiceTable.due_date < cutoff)
            .values(status=InvoiceStatus.OVERDUE, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if tenant_id is not None:
            stmt = stmt.where(InvoiceTable.tenant_id == tenant_id)
        result = await self.db.execute(stmt)
        await self.db.commit()

        updated = int(result.rowcount or 0)
        self.metrics.record_invoices_overdue(updated)
        if updated:
            logger.info("invoice.overdue.marked", count=updated, tenant_id=tenant_id)
        return updated

    async def get_invoice(self, invoice_id: str, tenant_id: str | None = None) -> Invoice:
        return Invoice.model_validate(await self._get_row(invoice_id, tenant_id))

    async def list_invoices(self, tenant_id: str, limit: int | None = None) -> list[Invoice]:
        """Tenant invoices, newest first."""
        stmt = (
            select(InvoiceTable)
            .where(InvoiceTable.tenant_id == tenant_id)
            .order_by(InvoiceTable.issue_date.desc(), InvoiceTable.invoice_number.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return [Invoice.model_validate(row) for row in result.scalars().all()]

    async def _get_row(
        self, invoice_id: str, tenant_id: str | None = None, refresh: bool = False
    ) -> InvoiceTable:
        stmt = select(InvoiceTable).where(InvoiceTable.id == invoice_id)
        if tenant_id is not None:
            stmt = stmt.where(InvoiceTable.tenant_id == tenant_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found", invoice_id=invoice_id)
        return row


__all__ = ["InvoiceGenerator", "build_line_item"]
