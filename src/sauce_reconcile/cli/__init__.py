"""Command line interface for sauce-reconcile."""
