"""Operator key management and transaction signing."""
