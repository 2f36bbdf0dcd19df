"""
Invoice API router.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fireguard.platform.billing.invoicing.models import (
    GenerateInvoiceRequest,
    Invoice,
    MarkPaidRequest,
    OverdueCheckResult,
)
from fireguard.platform.billing.invoicing.service import InvoiceGenerator
from fireguard.platform.db import get_async_session

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/billing/invoices")


def get_invoice_generator(
    db: Annotated[AsyncSession, Depends(get_async_session)],
) -> InvoiceGenerator:
    """Dependency to get InvoiceGenerator instance."""
    return InvoiceGenerator(db)


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
async def generate_invoice(
    request: GenerateInvoiceRequest,
    generator: Annotated[InvoiceGenerator, Depends(get_invoice_generator)],
) -> Invoice:
    """
    Invoice a tenant's unbilled usage in ``[billing_period_start, billing_period_end]``.

    Returns 422 ``NO_UNBILLED_USAGE`` when there is nothing to bill.
    """
    return await generator.generate_invoice(
        tenant_id=request.tenant_id,
        billing_period_start=request.billing_period_start,
        billing_period_end=request.billing_period_end,
        due_in_days=request.due_in_days,
    )


@router.get("", response_model=list[Invoice])
async def list_invoices(
    tenant_id: Annotated[str, Query(min_length=1)],
    generator: Annotated[InvoiceGenerator, Depends(get_invoice_generator)],
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[Invoice]:
    return await generator.list_invoices(tenant_id, limit=limit)


@router.post("/check-overdue", response_model=OverdueCheckResult)
async def check_overdue_invoices(
    generator: Annotated[InvoiceGenerator, Depends(get_invoice_generator)],
) -> OverdueCheckResult:
    """Move issued invoices past their due date to OVERDUE."""
    return OverdueCheckResult(updated=await generator.check_overdue_invoices())


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(
    invoice_id: str,
    generator: Annotated[InvoiceGenerator, Depends(get_invoice_generator)],
) -> Invoice:
    return await generator.get_invoice(invoice_id)


@router.post("/{invoice_id}/pay", response_model=Invoice)
async def mark_invoice_paid(
    invoice_id: str,
    generator: Annotated[InvoiceGenerator, Depends(get_invoice_generator)],
    request: MarkPaidRequest | None = None,
) -> Invoice:
    paid_date = request.paid_date if request is not None else None
    return await generator.mark_invoice_as_paid(invoice_id, paid_date=paid_date)


__all__ = ["router"]
