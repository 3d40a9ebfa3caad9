"""
Energy monitoring API package.

Stores time-series energy consumption readings in PostgreSQL, ingests them
from CSV uploads, computes aggregate statistics, and exports CSV/Markdown
reports over an authenticated FastAPI surface.

CHANGELOG:
- 2026-10-15: Initial creation
"""

__version__ = "1.0.0"
