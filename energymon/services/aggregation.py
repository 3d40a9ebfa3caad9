"""
Aggregation service for descriptive statistics over energy readings.

Computes count, sum, mean, min/max, sample standard deviation, the peak
reading, timestamp bounds and distinct UTC day count in a single SQL
statement over energy_data, optionally bounded by a timestamp range.

Values are kept unrounded in the AggregateSnapshot; rounding to two decimals
happens only when a snapshot is rendered for a client (kpis(), summary(), and
the exporter).

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def round2(value: float) -> float:
    """Round to two decimal places for presentation."""
    return round(value, 2)


@dataclass(frozen=True)
class AggregateSnapshot:
    """Point-in-time statistics over the stored readings.

    Attributes:
        count_points: Number of matching readings.
        total_consumption: Sum of consumption (kWh).
        avg_consumption: Arithmetic mean of consumption (kWh).
        peak_consumption: Maximum consumption (kWh).
        peak_timestamp: Timestamp of the peak reading, most recent on ties.
        min_consumption: Minimum consumption (kWh).
        max_consumption: Maximum consumption (kWh).
        consumption_stddev: Sample standard deviation (0.0 when N <= 1).
        earliest_timestamp: Oldest reading timestamp, None if empty.
        latest_timestamp: Newest reading timestamp, None if empty.
        days_of_data: Number of distinct UTC calendar dates.
    """

    count_points: int = 0
    total_consumption: float = 0.0
    avg_consumption: float = 0.0
    peak_consumption: float = 0.0
    peak_timestamp: datetime | None = None
    min_consumption: float = 0.0
    max_consumption: float = 0.0
    consumption_stddev: float = 0.0
    earliest_timestamp: datetime | None = None
    latest_timestamp: datetime | None = None
    days_of_data: int = 0

    @property
    def is_empty(self) -> bool:
        return self.count_points == 0

    @classmethod
    def from_row(cls, row: dict | None) -> "AggregateSnapshot":
        """Build a snapshot from an aggregate result mapping.

        NULL aggregates (empty input, or STDDEV_SAMP over a single row) become
        0 for numeric fields and None for timestamps.
        """
        if not row:
            return cls()
        count = int(row.get("count_points") or 0)
        if count == 0:
            return cls()
        return cls(
            count_points=count,
            total_consumption=float(row.get("total_consumption") or 0.0),
            avg_consumption=float(row.get("avg_consumption") or 0.0),
            peak_consumption=float(row.get("max_consumption") or 0.0),
            peak_timestamp=row.get("peak_timestamp"),
            min_consumption=float(row.get("min_consumption") or 0.0),
            max_consumption=float(row.get("max_consumption") or 0.0),
            consumption_stddev=float(row.get("consumption_stddev") or 0.0),
            earliest_timestamp=row.get("earliest_timestamp"),
            latest_timestamp=row.get("latest_timestamp"),
            days_of_data=int(row.get("days_of_data") or 0),
        )

    def kpis(self) -> dict:
        """Headline KPIs as served by GET /metrics (rounded)."""
        return {
            "count_points": self.count_points,
            "total_consumption": round2(self.total_consumption),
            "avg_consumption": round2(self.avg_consumption),
            "peak_consumption": round2(self.peak_consumption),
            "peak_timestamp": self.peak_timestamp,
        }

    def summary(self) -> dict:
        """Bounds and dispersion as served by GET /metrics/summary (rounded)."""
        return {
            "earliest_timestamp": self.earliest_timestamp,
            "latest_timestamp": self.latest_timestamp,
            "min_consumption": round2(self.min_consumption),
            "max_consumption": round2(self.max_consumption),
            "consumption_stddev": round2(self.consumption_stddev),
            "days_of_data": self.days_of_data,
        }


def build_time_filter(
    start: datetime | None,
    end: datetime | None,
    column: str = "timestamp",
) -> tuple[str, dict]:
    """Build an inclusive timestamp range WHERE clause.

    Args:
        start: Lower bound (inclusive), or None.
        end: Upper bound (inclusive), or None.
        column: Column name to filter on.

    Returns:
        tuple[str, dict]: The clause (empty string when unbounded, otherwise
            starting with " WHERE ") and its bind parameters.
    """
    conditions: list[str] = []
    params: dict = {}
    if start is not None:
        conditions.append(f"{column} >= :start")
        params["start"] = start
    if end is not None:
        conditions.append(f"{column} <= :end")
        params["end"] = end
    if not conditions:
        return "", params
    return " WHERE " + " AND ".join(conditions), params


def _snapshot_sql(where: str) -> str:
    return (
        "WITH filtered AS ("
        f"SELECT timestamp, consumption FROM energy_data{where}"
        "), agg AS ("
        "SELECT COUNT(*) AS count_points, "
        "SUM(consumption) AS total_consumption, "
        "AVG(consumption) AS avg_consumption, "
        "MIN(consumption) AS min_consumption, "
        "MAX(consumption) AS max_consumption, "
        "STDDEV_SAMP(consumption) AS consumption_stddev, "
        "MIN(timestamp) AS earliest_timestamp, "
        "MAX(timestamp) AS latest_timestamp, "
        "COUNT(DISTINCT (timestamp AT TIME ZONE 'UTC')::date) AS days_of_data "
        "FROM filtered"
        "), peak AS ("
        "SELECT timestamp AS peak_timestamp FROM filtered "
        "ORDER BY consumption DESC, timestamp DESC LIMIT 1"
        ") "
        "SELECT agg.*, peak.peak_timestamp FROM agg LEFT JOIN peak ON TRUE"
    )


async def compute_snapshot(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
) -> AggregateSnapshot:
    """Compute an AggregateSnapshot over energy_data.

    The result is a pure function of the stored rows and the bounds; nothing
    is cached.

    Args:
        db: Async database session.
        start: Optional inclusive lower timestamp bound.
        end: Optional inclusive upper timestamp bound.

    Returns:
        AggregateSnapshot: Unrounded statistics; empty snapshot if no rows.
    """
    where, params = build_time_filter(start, end)
    result = await db.execute(text(_snapshot_sql(where)), params)
    row = result.mappings().first()
    snapshot = AggregateSnapshot.from_row(dict(row) if row is not None else None)

    logger.debug(
        "Aggregate snapshot: start=%s end=%s count=%d",
        start,
        end,
        snapshot.count_points,
    )
    return snapshot
