"""Channel content ingestion service."""
