"""Calendar-month billing periods (always UTC)."""

from datetime import UTC, datetime

from fireguard.platform.db import ensure_utc


def normalize_period(value: datetime | None = None) -> datetime:
    """First instant of the calendar month containing ``value`` (default: now)."""
    moment = ensure_utc(value) if value is not None else datetime.now(UTC)
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def next_period(period: datetime) -> datetime:
    start = normalize_period(period)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def period_key(period: datetime) -> str:
    """Stable identifier used in logs and error context, e.g. '2025-01'."""
    return normalize_period(period).strftime("%Y-%m")
