"""Monthly usage ledger."""
