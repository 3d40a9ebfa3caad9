"""Database models, engine lifecycle and migrations."""
