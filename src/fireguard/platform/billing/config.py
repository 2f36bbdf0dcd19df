"""
Billing module configuration
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class TaxConfig(BaseModel):
    """Tax configuration (single flat rate)"""

    model_config = ConfigDict()

    default_tax_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1, description="Default tax rate")


class CurrencyConfig(BaseModel):
    """Currency configuration - Single currency support"""

    model_config = ConfigDict()

    currency: str = Field("GBP", description="Billing currency code")
    locale: str = Field("en_GB", description="Locale for formatting amounts and periods")


class InvoiceConfig(BaseModel):
    """Invoice configuration"""

    model_config = ConfigDict()

    number_prefix: str = Field("INV", description="Invoice number prefix")
    sequence_digits: int = Field(5, ge=1, description="Zero-padded sequence width")
    due_days_default: int = Field(30, ge=0, description="Default payment terms in days")
    recent_invoice_count: int = Field(5, ge=0, description="Invoices shown in the overview")

    def format_number(self, tenant_code: str, sequence: int) -> str:
        return f"{self.number_prefix}-{tenant_code}-{sequence:0{self.sequence_digits}d}"


class QuotaConfig(BaseModel):
    """Quota warning configuration"""

    model_config = ConfigDict()

    near_limit_threshold: Decimal = Field(
        Decimal("0.80"), gt=0, le=1, description="Fraction of a limit that triggers a warning"
    )


class BillingConfig(BaseModel):
    """Main billing configuration"""

    model_config = ConfigDict()

    tax: TaxConfig = Field(default_factory=TaxConfig)
    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    invoice: InvoiceConfig = Field(default_factory=InvoiceConfig)
    quota: QuotaConfig = Field(default_factory=QuotaConfig)

    @classmethod
    def from_settings(cls) -> "BillingConfig":
        """Create configuration from the centralized settings"""
        from fireguard.platform.settings import settings

        billing = settings.billing
        return cls(
            tax=TaxConfig(default_tax_rate=billing.default_tax_rate),
            currency=CurrencyConfig(currency=billing.currency, locale=billing.locale),
            invoice=InvoiceConfig(
                number_prefix=billing.invoice_number_prefix,
                sequence_digits=billing.invoice_sequence_digits,
                due_days_default=billing.invoice_due_days,
                recent_invoice_count=billing.recent_invoice_count,
            ),
            quota=QuotaConfig(near_limit_threshold=billing.near_limit_threshold),
        )


# Global configuration instance
_billing_config: BillingConfig | None = None


def get_billing_config() -> BillingConfig:
    """Get the global billing configuration instance"""
    global _billing_config
    if _billing_config is None:
        _billing_config = BillingConfig.from_settings()
    return _billing_config


def set_billing_config(config: BillingConfig | None) -> None:
    """Set the global billing configuration instance"""
    global _billing_config
    _billing_config = config
