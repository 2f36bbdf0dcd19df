"""Tenants and their billing configuration."""
