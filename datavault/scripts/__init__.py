"""Operational scripts (schema initialization)."""
