"""Asynchronous video ingestion reconciliation."""

__version__ = "0.1.0"
