"""
Reading store: range queries, pagination and single-record CRUD on energy_data.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from energymon.db.models import EnergyReading
from energymon.errors import ConflictError

logger = logging.getLogger(__name__)

DUPLICATE_READING_MESSAGE = "A reading with this timestamp and consumption already exists"


@dataclass(frozen=True)
class ReadingPatch:
    """Partial update of a reading; None means "leave unchanged".

    Attributes:
        timestamp: New measurement instant, or None.
        consumption: New consumption value, or None.
    """

    timestamp: datetime | None = None
    consumption: float | None = None


def _range_conditions(start: datetime | None, end: datetime | None) -> list:
    conditions = []
    if start is not None:
        conditions.append(EnergyReading.timestamp >= start)
    if end is not None:
        conditions.append(EnergyReading.timestamp <= end)
    return conditions


async def count_readings(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
) -> int:
    """Count readings, optionally within an inclusive timestamp range."""
    stmt = select(func.count()).select_from(EnergyReading).where(*_range_conditions(start, end))
    result = await db.execute(stmt)
    return int(result.scalar_one())


async def list_readings(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 100,
    page: int = 1,
) -> tuple[list[EnergyReading], int]:
    """Return one page of readings, newest first, plus the filtered total.

    Args:
        db: Async database session.
        start: Optional inclusive lower bound.
        end: Optional inclusive upper bound.
        limit: Page size.
        page: 1-based page number. Pages past the end are empty.

    Returns:
        tuple[list[EnergyReading], int]: The page rows and the total count.
    """
    total = await count_readings(db, start, end)
    offset = (page - 1) * limit
    if offset >= total:
        return [], total
    stmt = (
        select(EnergyReading)
        .where(*_range_conditions(start, end))
        .order_by(EnergyReading.timestamp.desc(), EnergyReading.id.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def readings_for_export(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int | None = None,
) -> list[dict]:
    """Return readings ascending by timestamp as plain dicts for CSV export."""
    stmt = (
        select(EnergyReading.timestamp, EnergyReading.consumption)
        .where(*_range_conditions(start, end))
        .order_by(EnergyReading.timestamp.asc(), EnergyReading.id.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return [dict(row) for row in result.mappings().all()]


async def get_reading(db: AsyncSession, reading_id: int) -> EnergyReading | None:
    return await db.get(EnergyReading, reading_id)


async def create_reading(db: AsyncSession, timestamp: datetime, consumption: float) -> EnergyReading:
    """Insert a single reading.

    Raises:
        ConflictError: If an identical (timestamp, consumption) pair exists.
    """
    reading = EnergyReading(timestamp=timestamp, consumption=consumption)
    db.add(reading)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(DUPLICATE_READING_MESSAGE) from exc
    await db.refresh(reading)
    logger.info("Created reading id=%s", reading.id)
    return reading


async def update_reading(
    db: AsyncSession,
    reading_id: int,
    patch: ReadingPatch,
) -> EnergyReading | None:
    """Apply a partial update to a reading.

    Returns:
        EnergyReading | None: The updated reading, or None if absent.

    Raises:
        ConflictError: If the change collides with an existing reading.
    """
    reading = await db.get(EnergyReading, reading_id)
    if reading is None:
        return None
    if patch.timestamp is not None:
        reading.timestamp = patch.timestamp
    if patch.consumption is not None:
        reading.consumption = patch.consumption
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(DUPLICATE_READING_MESSAGE) from exc
    await db.refresh(reading)
    logger.info("Updated reading id=%s", reading_id)
    return reading


async def delete_reading(db: AsyncSession, reading_id: int) -> bool:
    """Delete a reading. Returns False if it did not exist."""
    result = await db.execute(
        delete(EnergyReading).where(EnergyReading.id == reading_id).returning(EnergyReading.id)
    )
    deleted = result.scalar_one_or_none()
    await db.commit()
    if deleted is None:
        return False
    logger.info("Deleted reading id=%s", reading_id)
    return True
