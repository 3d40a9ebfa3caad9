"""
Aggregate statistics endpoints: GET /metrics and GET /metrics/summary.

Both compute a fresh AggregateSnapshot per request (optionally bounded by
from/to) and round values to two decimals only in the response.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from energymon.api.deps import CurrentUser, DbSession, QueryRange
from energymon.services.aggregation import compute_snapshot

router = APIRouter(prefix="/metrics", tags=["metrics"])


class MetricsOut(BaseModel):
    """Headline KPIs.

    Attributes:
        count_points: Number of readings in range.
        total_consumption: Sum of consumption (kWh).
        avg_consumption: Mean consumption (kWh).
        peak_consumption: Maximum consumption (kWh).
        peak_timestamp: When the peak occurred (most recent on ties).
    """

    count_points: int
    total_consumption: float
    avg_consumption: float
    peak_consumption: float
    peak_timestamp: datetime | None


class SummaryOut(BaseModel):
    """Bounds and dispersion.

    Attributes:
        earliest_timestamp: Oldest reading in range.
        latest_timestamp: Newest reading in range.
        min_consumption: Minimum consumption (kWh).
        max_consumption: Maximum consumption (kWh).
        consumption_stddev: Sample standard deviation (kWh).
        days_of_data: Distinct UTC calendar dates with readings.
    """

    earliest_timestamp: datetime | None
    latest_timestamp: datetime | None
    min_consumption: float
    max_consumption: float
    consumption_stddev: float
    days_of_data: int


@router.get("", response_model=MetricsOut)
async def get_metrics(user: CurrentUser, db: DbSession, time_range: QueryRange) -> MetricsOut:
    """Return count, total, average and peak consumption."""
    snapshot = await compute_snapshot(db, time_range.start, time_range.end)
    return MetricsOut(**snapshot.kpis())


@router.get("/summary", response_model=SummaryOut)
async def get_metrics_summary(
    user: CurrentUser,
    db: DbSession,
    time_range: QueryRange,
) -> SummaryOut:
    """Return timestamp bounds, min/max, standard deviation and day count."""
    snapshot = await compute_snapshot(db, time_range.start, time_range.end)
    return SummaryOut(**snapshot.summary())
