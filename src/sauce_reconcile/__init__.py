"""Sauce Labs session reconciliation for CI test runs."""

__version__ = "0.1.0"
