"""Asset storage core: upload ingestion, storage strategies, quotas and public links."""

__version__ = "0.1.0"
