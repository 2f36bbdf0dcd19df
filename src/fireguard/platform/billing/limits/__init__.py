"""Tenant quota checks and quota-guarded creates."""
