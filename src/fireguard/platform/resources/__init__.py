"""Metered resources: fire doors, buildings, users and inspections."""
