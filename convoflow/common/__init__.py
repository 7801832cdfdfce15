"""Shared helpers used by the adapters (logging setup)."""
