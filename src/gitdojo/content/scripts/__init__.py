"""Declarative run scripts (JSON)."""
