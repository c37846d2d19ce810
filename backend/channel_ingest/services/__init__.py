"""Ingestion services: storage, external tools, persistence and orchestration."""
