"""
FireGuard billing engine.

Usage metering, quota enforcement and invoicing for the FireGuard
multi-tenant fire-door inspection platform:
- Pricing of monthly usage per tenant billing model
- Monthly usage ledger with idempotent snapshots
- Quota checks and quota-guarded resource creation
- Invoice generation, numbering and payment lifecycle
"""

__version__ = "1.0.0"
