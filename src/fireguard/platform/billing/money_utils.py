"""
Money and currency utilities using py-moneyed and Babel.

Provides fixed-point rounding at currency precision, locale-aware
formatting of amounts and billing-period labels.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from babel import Locale
from babel.core import UnknownLocaleError
from babel.dates import format_date
from babel.numbers import format_currency, get_currency_precision
from moneyed import Currency, Money, get_currency
from moneyed.classes import CurrencyDoesNotExist

DEFAULT_CURRENCY = "GBP"
DEFAULT_LOCALE = "en_GB"

# Unit prices are shown with more precision than settled amounts
UNIT_PRICE_PLACES = 4


class MoneyHandler:
    """Central handler for money operations with proper error handling."""

    def __init__(
        self, default_currency: str = DEFAULT_CURRENCY, default_locale: str = DEFAULT_LOCALE
    ) -> None:
        self.default_currency = self._validate_currency(default_currency)
        self.default_locale = self._validate_locale(default_locale)

    def _validate_currency(self, currency_code: str) -> Currency:
        """Validate and return Currency object."""
        try:
            return get_currency(currency_code.upper())
        except CurrencyDoesNotExist:
            raise ValueError(f"Invalid currency code: {currency_code}")

    def _validate_locale(self, locale_code: str) -> str:
        """Validate locale code."""
        try:
            Locale.parse(locale_code)
            return locale_code
        except (UnknownLocaleError, ValueError):
            return DEFAULT_LOCALE

    def get_currency_precision(self, currency_code: str | None = None) -> int:
        """Get decimal precision for a currency."""
        return get_currency_precision((currency_code or self.default_currency.code).upper())

    def quantize(self, amount: Decimal, places: int | None = None) -> Decimal:
        """Round half-up to currency precision (or an explicit number of places)."""
        if places is None:
            places = self.get_currency_precision()
        return Decimal(amount).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)

    def create_money(self, amount: int | Decimal | str, currency: str | None = None) -> Money:
        """Create Money object with proper validation."""
        validated_currency = self._validate_currency(currency or self.default_currency.code)
        return Money(amount=Decimal(str(amount)), currency=validated_currency)

    def format_money(self, money: Money, locale: str | None = None, **kwargs: Any) -> str:
        """Format Money object with locale-aware formatting."""
        validated_locale = self._validate_locale(locale or self.default_locale)
        try:
            return format_currency(
                number=money.amount, currency=money.currency.code, locale=validated_locale, **kwargs
            )
        except (TypeError, ValueError):
            return f"{money.currency.code} {money.amount}"

    def format_amount(self, amount: Decimal, locale: str | None = None) -> str:
        """Format a bare Decimal in the default currency."""
        return self.format_money(self.create_money(amount), locale)

    def format_period(self, period: datetime, locale: str | None = None) -> str:
        """Short month label for a billing period, e.g. 'Jan 2025'."""
        return format_date(period.date(), "MMM yyyy", locale=locale or self.default_locale)

    def money_to_minor_units(self, money: Money) -> int:
        """Convert Money to minor units (e.g., pence for GBP)."""
        precision = self.get_currency_precision(money.currency.code)
        return int(self.quantize(money.amount, precision) * (10**precision))


_money_handler: MoneyHandler | None = None


def get_money_handler() -> MoneyHandler:
    """Handler bound to the configured billing currency and locale."""
    global _money_handler
    if _money_handler is None:
        from fireguard.platform.billing.config import get_billing_config

        currency = get_billing_config().currency
        _money_handler = MoneyHandler(currency.currency, currency.locale)
    return _money_handler


def reset_money_handler() -> None:
    global _money_handler
    _money_handler = None


def quantize_amount(amount: Decimal) -> Decimal:
    """Round to the configured currency's precision."""
    return get_money_handler().quantize(amount)


def quantize_unit_price(amount: Decimal) -> Decimal:
    return get_money_handler().quantize(amount, UNIT_PRICE_PLACES)


def format_amount(amount: Decimal, locale: str | None = None) -> str:
    return get_money_handler().format_amount(amount, locale)


def format_period(period: datetime, locale: str | None = None) -> str:
    return get_money_handler().format_period(period, locale)


__all__ = [
    "MoneyHandler",
    "get_money_handler",
    "reset_money_handler",
    "quantize_amount",
    "quantize_unit_price",
    "format_amount",
    "format_period",
]
