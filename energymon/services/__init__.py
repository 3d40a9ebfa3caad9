"""Domain services: credential and reading stores, CSV ingest, aggregation, export."""
