"""
Download endpoints under /export: readings CSV, metrics CSV and a Markdown
report, each served as an attachment.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import Response

from energymon.api.deps import CurrentUser, DbSession, QueryRange
from energymon.errors import InputValidationError
from energymon.services.aggregation import compute_snapshot
from energymon.services.export import (
    export_filename,
    metrics_to_csv,
    readings_to_csv,
    render_report,
)
from energymon.services.readings import readings_for_export

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/export", tags=["export"])

MAX_EXPORT_ROWS = 100000


def _attachment(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/data.csv")
async def export_data_csv(
    user: CurrentUser,
    db: DbSession,
    time_range: QueryRange,
    limit: Annotated[int | None, Query(description="Maximum rows, 1-100000.")] = None,
) -> Response:
    """Download readings as CSV, ascending by timestamp.

    Raises:
        InputValidationError: 400 if limit is outside 1-100000.
    """
    if limit is not None and (limit < 1 or limit > MAX_EXPORT_ROWS):
        raise InputValidationError(f"Limit must be between 1 and {MAX_EXPORT_ROWS}")

    rows = await readings_for_export(db, time_range.start, time_range.end, limit)
    logger.info("Exporting %d reading(s) for user id=%s", len(rows), user.id)
    return _attachment(readings_to_csv(rows), "text/csv", export_filename("energy_data", "csv"))


@router.get("/metrics.csv")
async def export_metrics_csv(user: CurrentUser, db: DbSession, time_range: QueryRange) -> Response:
    """Download the aggregate KPIs as ``metric,value`` CSV."""
    snapshot = await compute_snapshot(db, time_range.start, time_range.end)
    return _attachment(
        metrics_to_csv(snapshot), "text/csv", export_filename("energy_metrics", "csv")
    )


@router.get("/report.md")
async def export_report(user: CurrentUser, db: DbSession, time_range: QueryRange) -> Response:
    """Download a Markdown monitoring report."""
    snapshot = await compute_snapshot(db, time_range.start, time_range.end)
    return _attachment(
        render_report(snapshot), "text/markdown", export_filename("energy_report", "md")
    )
