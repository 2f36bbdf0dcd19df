#!/usr/bin/env python
"""
CLI management commands for the FireGuard billing engine.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import click
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fireguard.platform.billing.exceptions import BillingError
from fireguard.platform.billing.invoicing.service import InvoiceGenerator
from fireguard.platform.billing.limits.service import QuotaEnforcer
from fireguard.platform.billing.usage.batch import UsageBatchRunner
from fireguard.platform.billing.usage.service import UsageLedger
from fireguard.platform.db import create_all_tables_async, get_async_session_maker
from fireguard.platform.logging import setup_logging

T = TypeVar("T")

_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m", "%Y-%m-%dT%H:%M:%S"]


@dataclass
class CLIDependencies:
    """Bundle of injectable dependencies used by CLI commands."""

    session_factory: Callable[[], async_sessionmaker[AsyncSession]]
    create_tables: Callable[[], Awaitable[None]]


def _get_cli_dependencies() -> CLIDependencies:
    """Return the default dependency bundle for CLI commands."""
    return CLIDependencies(
        session_factory=get_async_session_maker,
        create_tables=create_all_tables_async,
    )


def _run(coro: Awaitable[T]) -> T:
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except BillingError as e:
        raise click.ClickException(f"{e.error_code}: {e.message}") from e


def _echo_model(model: BaseModel) -> None:
    click.echo(model.model_dump_json(indent=2))


async def _with_session(work: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
    deps = _get_cli_dependencies()
    async with deps.session_factory()() as session:
        return await work(session)


@click.group()
def cli() -> None:
    """FireGuard billing engine CLI."""
    setup_logging()


@cli.command()
def init_database() -> None:
    """Create the billing engine's tables."""
    deps = _get_cli_dependencies()
    click.echo("Initializing database...")
    asyncio.run(deps.create_tables())
    click.echo("Database initialized successfully!")


@cli.command()
@click.argument("tenant_id")
@click.option("--period", type=click.DateTime(_DATE_FORMATS), help="Any date within the month")
def snapshot_usage(tenant_id: str, period: datetime | None) -> None:
    """Snapshot one tenant's usage for a month."""
    record = _run(_with_session(lambda s: UsageLedger(s).snapshot_usage(tenant_id, period)))
    _echo_model(record)


@cli.command()
@click.option("--period", type=click.DateTime(_DATE_FORMATS), help="Any date within the month")
@click.option("--tenant", "tenant_ids", multiple=True, help="Restrict to these tenants")
def run_monthly_usage(period: datetime | None, tenant_ids: tuple[str, ...]) -> None:
    """Snapshot every active tenant's usage."""
    deps = _get_cli_dependencies()
    runner = UsageBatchRunner(deps.session_factory())
    result = _run(runner.run_monthly_usage_for_all_tenants(period, list(tenant_ids) or None))
    click.echo(f"Tracked: {result.tracked}  Failed: {result.failed}")
    for failure in result.results:
        if not failure.success:
            click.echo(f"  {failure.tenant_id}: [{failure.error_code}] {failure.error}", err=True)


@cli.command()
@click.argument("tenant_id")
@click.option("--start", required=True, type=click.DateTime(_DATE_FORMATS))
@click.option("--end", required=True, type=click.DateTime(_DATE_FORMATS))
@click.option("--due-in-days", type=int, default=None, help="Payment terms in days")
def generate_invoice(
    tenant_id: str, start: datetime, end: datetime, due_in_days: int | None
) -> None:
    """Invoice a tenant's unbilled usage between two dates (inclusive)."""
    invoice = _run(
        _with_session(
            lambda s: InvoiceGenerator(s).generate_invoice(
                tenant_id, start, end, due_in_days=due_in_days
            )
        )
    )
    _echo_model(invoice)


@cli.command()
@click.argument("invoice_id")
@click.option("--paid-date", type=click.DateTime(_DATE_FORMATS), default=None)
def mark_paid(invoice_id: str, paid_date: datetime | None) -> None:
    """Record payment of an invoice."""
    invoice = _run(
        _with_session(lambda s: InvoiceGenerator(s).mark_invoice_as_paid(invoice_id, paid_date))
    )
    click.echo(f"Invoice {invoice.invoice_number} marked {invoice.status.value}")


@cli.command()
def check_overdue() -> None:
    """Move issued invoices past their due date to OVERDUE."""
    updated = _run(_with_session(lambda s: InvoiceGenerator(s).check_overdue_invoices()))
    click.echo(f"{updated} invoice(s) marked overdue")


@cli.command()
@click.argument("tenant_id")
def show_limits(tenant_id: str) -> None:
    """Show a tenant's usage against each quota."""
    limits = _run(_with_session(lambda s: QuotaEnforcer(s).get_all_limits(tenant_id)))
    for check in (limits.doors, limits.buildings, limits.users, limits.inspectors):
        flag = " AT LIMIT" if check.is_at_limit else (" near limit" if check.is_near_limit else "")
        click.echo(
            f"{check.resource_type.value:<11} {check.current:>6} / {check.limit:<6}"
            f" ({check.percentage:.1f}%){flag}"
        )


if __name__ == "__main__":
    cli()
