"""TrendFlow: ingestion-to-topic pipeline for startup direction discovery."""

__version__ = "0.1.0"
