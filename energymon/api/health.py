"""
Health check and API index endpoints.

GET /health needs no authentication and is intended for Docker HEALTHCHECK
and the reverse proxy. GET / lists the available endpoints.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from datetime import UTC, datetime

from fastapi import APIRouter

from energymon.api.deps import AppSettings
from energymon.services.ingestion import isoformat_utc

router = APIRouter(tags=["health"])

ENDPOINTS = {
    "auth": "POST /token",
    "health": "GET /health",
    "users": "GET|POST /users, GET|PUT|DELETE /users/{id}",
    "data": "GET|POST /data, POST /data/upload, GET|PUT|DELETE /data/{id}",
    "metrics": "GET /metrics, GET /metrics/summary",
    "export": "GET /export/data.csv, /export/metrics.csv, /export/report.md",
    "docs": "GET /docs",
}


@router.get("/health")
async def health(settings: AppSettings) -> dict[str, str]:
    """Return service status, current time and version.

    Returns:
        dict: ``{"status": "ok", "timestamp": ..., "version": ...}``.
    """
    return {
        "status": "ok",
        "timestamp": isoformat_utc(datetime.now(UTC)),
        "version": settings.app_version,
    }


@router.get("/")
async def index(settings: AppSettings) -> dict:
    """Describe the API and list its endpoints."""
    return {
        "title": "Microgrid Energy Monitoring API",
        "version": settings.app_version,
        "description": "Time-series energy consumption storage, statistics and export.",
        "endpoints": ENDPOINTS,
    }
