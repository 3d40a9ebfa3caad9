"""
CSV ingestion service for energy consumption readings.

Parses a CSV table of (timestamp, consumption) pairs into validated records
and writes them to energy_data in fixed-size batches. Rows whose consumption
is not a finite non-negative number, or whose timestamp cannot be parsed, are
dropped with a warning; only a stream that is not valid CSV at all fails the
whole operation.

Each batch is one INSERT ... ON CONFLICT (timestamp, consumption) DO NOTHING
committed on its own, so re-uploading the same file is idempotent. A failing
batch aborts the upload but batches already committed stay in place.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import csv
import io
import logging
import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from dateutil import parser as date_parser
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from energymon.db.models import EnergyReading
from energymon.errors import MalformedInputError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000
REQUIRED_COLUMNS = ("timestamp", "consumption")


@dataclass(frozen=True)
class ReadingRecord:
    """A validated (timestamp, consumption) pair ready for insertion.

    Attributes:
        timestamp: Measurement instant, timezone-aware UTC.
        consumption: Consumed energy in kWh, finite and >= 0.
    """

    timestamp: datetime
    consumption: float

    def as_row(self) -> dict:
        """Return the record as an insert parameter dict."""
        return {"timestamp": self.timestamp, "consumption": self.consumption}


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a batched insert.

    Attributes:
        records_processed: Number of validated records submitted.
        records_inserted: Number of rows actually written (duplicates skipped).
    """

    records_processed: int
    records_inserted: int


def as_utc(value: datetime) -> datetime:
    """Convert to aware UTC, taking naive datetimes to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def isoformat_utc(value: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with a ``Z`` suffix."""
    return as_utc(value).isoformat().replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    """Parse a calendar date-time string and normalise it to aware UTC.

    Accepts ISO-8601 variants (``2025-01-01T00:00:00Z``, ``2025-01-01
    00:00``, offsets) and other common formats understood by dateutil.
    Values without an offset are taken as UTC.

    Args:
        raw: The timestamp field as read from the CSV.

    Returns:
        datetime: Timezone-aware UTC datetime.

    Raises:
        ValueError: If the string is not a recognisable date-time.
    """
    text = raw.strip()
    if not text:
        raise ValueError("empty timestamp")
    try:
        parsed = date_parser.isoparse(text)
    except ValueError:
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"unrecognised timestamp {raw!r}") from exc
    try:
        return as_utc(parsed)
    except OverflowError as exc:
        raise ValueError(f"timestamp out of range {raw!r}") from exc


def parse_consumption(raw: str) -> float:
    """Parse a consumption value, requiring a finite non-negative number.

    Raises:
        ValueError: If the value is not numeric, NaN, infinite or negative.
    """
    text = raw.strip()
    # float() also accepts digit separators such as "1_000".
    if "_" in text:
        raise ValueError(f"invalid consumption {raw!r}")
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite consumption {raw!r}")
    if value < 0:
        raise ValueError(f"negative consumption {raw!r}")
    return value


def _decode(source: bytes | str) -> str:
    if isinstance(source, str):
        return source
    try:
        return source.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedInputError("CSV file is not valid UTF-8 text") from exc


def parse_csv(source: bytes | str) -> list[ReadingRecord]:
    """Parse CSV text into validated reading records, in source row order.

    The header row must contain ``timestamp`` and ``consumption`` (matched
    case-sensitively); other columns are ignored. Blank lines are skipped and
    field values trimmed. Invalid rows are dropped with a warning.

    Args:
        source: Raw upload bytes (UTF-8, BOM tolerated) or decoded text.

    Returns:
        list[ReadingRecord]: Zero or more validated records.

    Raises:
        MalformedInputError: If the stream is not decodable or not valid CSV,
            or the header lacks a required column. No partial result is
            returned in that case.
    """
    text = _decode(source)
    reader = csv.DictReader(io.StringIO(text, newline=""), strict=True)
    records: list[ReadingRecord] = []
    dropped = 0

    try:
        header = reader.fieldnames
        if header is None:
            raise MalformedInputError("CSV file is empty")
        columns = {name.strip() for name in header if name is not None}
        missing = [col for col in REQUIRED_COLUMNS if col not in columns]
        if missing:
            raise MalformedInputError(
                f"CSV header is missing required column(s): {', '.join(missing)}"
            )
        reader.fieldnames = [name.strip() for name in header]

        for row in reader:
            line = reader.line_num
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                continue

            raw_consumption = (row.get("consumption") or "").strip()
            try:
                consumption = parse_consumption(raw_consumption)
            except ValueError:
                logger.warning(
                    "Skipping CSV line %d: invalid consumption value %r",
                    line,
                    raw_consumption,
                )
                dropped += 1
                continue

            raw_timestamp = (row.get("timestamp") or "").strip()
            try:
                timestamp = parse_timestamp(raw_timestamp)
            except ValueError:
                logger.warning(
                    "Skipping CSV line %d: invalid timestamp value %r",
                    line,
                    raw_timestamp,
                )
                dropped += 1
                continue

            records.append(ReadingRecord(timestamp=timestamp, consumption=consumption))
    except csv.Error as exc:
        raise MalformedInputError(f"Malformed CSV at line {reader.line_num}: {exc}") from exc

    logger.info("Parsed %d CSV record(s), dropped %d invalid row(s)", len(records), dropped)
    return records


def chunked(records: Sequence[ReadingRecord], size: int) -> Iterator[Sequence[ReadingRecord]]:
    """Yield consecutive slices of at most ``size`` records."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(records), size):
        yield records[start : start + size]


async def _insert_chunk(db: AsyncSession, chunk: Sequence[ReadingRecord]) -> int:
    stmt = (
        pg_insert(EnergyReading)
        .values([record.as_row() for record in chunk])
        .on_conflict_do_nothing(index_elements=["timestamp", "consumption"])
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount


async def insert_readings(
    db: AsyncSession,
    records: Sequence[ReadingRecord],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> IngestResult:
    """Insert validated records in fixed-size, individually committed batches.

    Rows that collide with an existing (timestamp, consumption) pair are
    skipped. Any other database error propagates; earlier batches remain
    committed.

    Args:
        db: Async SQLAlchemy session.
        records: Validated records, e.g. from parse_csv().
        batch_size: Records per INSERT statement.

    Returns:
        IngestResult: Processed and actually inserted counts.
    """
    result = IngestResult(records_processed=len(records), records_inserted=0)
    for index, chunk in enumerate(chunked(records, batch_size)):
        inserted = await _insert_chunk(db, chunk)
        logger.debug("Batch %d: inserted %d/%d reading(s)", index, inserted, len(chunk))
        result = IngestResult(
            records_processed=result.records_processed,
            records_inserted=result.records_inserted + inserted,
        )

    logger.info(
        "Ingested %d/%d reading(s)",
        result.records_inserted,
        result.records_processed,
    )
    return result


async def ingest_csv(
    db: AsyncSession,
    source: bytes | str,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> IngestResult:
    """Parse a CSV source and insert its valid records.

    Raises:
        MalformedInputError: If the CSV stream cannot be parsed; nothing is
            inserted in that case.
    """
    records = parse_csv(source)
    return await insert_readings(db, records, batch_size)
