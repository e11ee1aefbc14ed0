"""Payroll computation and historical ledger engine."""

__version__ = "0.1.0"
