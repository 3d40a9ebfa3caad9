"""
Energy reading endpoints under /data: paginated listing, CSV upload and
single-record CRUD.

POST /data/upload parses the CSV completely before touching the database, so
a malformed file inserts nothing. Valid records are then written in
INGEST_BATCH_SIZE chunks with ON CONFLICT DO NOTHING; a failing chunk fails
the request but earlier chunks stay committed.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
import math
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, File, Path, Query, Request, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError

from energymon.api.deps import (
    AdminUser,
    AppSettings,
    CurrentUser,
    DbSession,
    QueryRange,
    utc_param,
)
from energymon.errors import ApiError, InputValidationError, NotFoundError, StorageError
from energymon.services import readings as reading_store
from energymon.services.ingestion import insert_readings, parse_csv
from energymon.services.readings import ReadingPatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])

MIN_LIMIT = 1
MAX_LIMIT = 10000
CSV_CONTENT_TYPES = frozenset({"text/csv", "application/csv"})

ReadingId = Annotated[int, Path(gt=0, description="Reading id.")]


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ReadingOut(BaseModel):
    """A stored energy reading."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    consumption: float


class ReadingPage(BaseModel):
    """One page of readings.

    Attributes:
        data: Readings on this page, newest first.
        count: Number of readings on this page.
        limit: Page size.
        page: 1-based page number.
        total: Number of readings matching the filter.
        totalPages: ceil(total / limit).
    """

    data: list[ReadingOut]
    count: int
    limit: int
    page: int
    total: int
    totalPages: int  # noqa: N815


class ReadingCreate(BaseModel):
    timestamp: datetime
    consumption: float = Field(ge=0, allow_inf_nan=False)


class ReadingUpdate(BaseModel):
    """Partial update body; only fields present in the JSON are applied."""

    timestamp: datetime | None = None
    consumption: float | None = Field(default=None, ge=0, allow_inf_nan=False)

    def to_patch(self) -> ReadingPatch:
        """Convert to a ReadingPatch, rejecting empty bodies and explicit nulls.

        Raises:
            InputValidationError: If no field was sent or a field is null.
        """
        present = self.model_fields_set
        if not present:
            raise InputValidationError("No fields provided for update")
        for name in present:
            if getattr(self, name) is None:
                raise InputValidationError(f"{name} cannot be null")
        return ReadingPatch(
            timestamp=utc_param(self.timestamp, "reading"),
            consumption=self.consumption,
        )


class ReadingMessage(BaseModel):
    message: str
    data: ReadingOut


class DeletedMessage(BaseModel):
    message: str
    id: int


class UploadResponse(BaseModel):
    """Outcome of a CSV upload.

    Attributes:
        message: Human-readable status.
        records_processed: Valid records parsed from the file.
        records_inserted: Rows actually written (duplicates skipped).
    """

    message: str
    records_processed: int
    records_inserted: int


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("", response_model=ReadingPage)
async def list_data(
    user: CurrentUser,
    db: DbSession,
    time_range: QueryRange,
    limit: Annotated[int, Query(description="Page size, 1-10000.")] = 100,
    page: Annotated[int, Query(description="1-based page number.")] = 1,
) -> ReadingPage:
    """Return readings newest first with pagination metadata.

    Raises:
        InputValidationError: 400 if limit is outside 1-10000.
    """
    if limit < MIN_LIMIT or limit > MAX_LIMIT:
        raise InputValidationError("Limit must be between 1 and 10000")
    page = max(page, 1)

    rows, total = await reading_store.list_readings(
        db, time_range.start, time_range.end, limit, page
    )
    return ReadingPage(
        data=[ReadingOut.model_validate(r) for r in rows],
        count=len(rows),
        limit=limit,
        page=page,
        total=total,
        totalPages=math.ceil(total / limit),
    )


@router.post("", response_model=ReadingMessage, status_code=201)
async def create_data(payload: ReadingCreate, user: CurrentUser, db: DbSession) -> ReadingMessage:
    """Create a single reading.

    Raises:
        ConflictError: 409 if an identical reading already exists.
    """
    reading = await reading_store.create_reading(
        db, utc_param(payload.timestamp, "reading"), payload.consumption
    )
    return ReadingMessage(message="Data created successfully", data=ReadingOut.model_validate(reading))


def _is_csv(file: UploadFile) -> bool:
    filename = (file.filename or "").lower()
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    return filename.endswith(".csv") or content_type in CSV_CONTENT_TYPES


async def _read_upload(request: Request, file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload, enforcing the size limit.

    Raises:
        ApiError: 413 if the request or file exceeds max_bytes.
    """
    too_large = ApiError(f"File exceeds limit of {max_bytes} bytes", status_code=413)

    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        # Multipart framing adds some overhead on top of the file itself.
        if int(content_length) > max_bytes + 64 * 1024:
            raise too_large

    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise too_large
    return content


@router.post("/upload", response_model=UploadResponse)
async def upload_data(
    request: Request,
    admin: AdminUser,
    db: DbSession,
    settings: AppSettings,
    file: Annotated[UploadFile | None, File(description="CSV with timestamp,consumption columns.")] = None,
) -> UploadResponse:
    """Ingest a CSV file of readings.

    Raises:
        InputValidationError: 400 if no file, not a CSV, or no valid records.
        MalformedInputError: 400 if the file is not parseable CSV.
        ApiError: 413 if the file is too large.
        StorageError: 500 if a batch insert fails.
    """
    if file is None:
        raise InputValidationError("No file uploaded")
    try:
        if not _is_csv(file):
            raise InputValidationError("Only CSV files are allowed")
        content = await _read_upload(request, file, settings.upload_max_bytes)
    finally:
        await file.close()

    records = parse_csv(content)
    if not records:
        raise InputValidationError("No valid records found in CSV")

    try:
        result = await insert_readings(db, records, settings.ingest_batch_size)
    except SQLAlchemyError as exc:
        logger.exception("Upload of %s failed during insert", file.filename)
        raise StorageError("Failed to process uploaded file") from exc

    logger.info(
        "Admin id=%s uploaded %s: %d processed, %d inserted",
        admin.id,
        file.filename,
        result.records_processed,
        result.records_inserted,
    )
    return UploadResponse(
        message="Data uploaded successfully",
        records_processed=result.records_processed,
        records_inserted=result.records_inserted,
    )


@router.get("/{reading_id}", response_model=ReadingOut)
async def get_data(reading_id: ReadingId, user: CurrentUser, db: DbSession) -> ReadingOut:
    """Return a single reading.

    Raises:
        NotFoundError: 404 if the reading does not exist.
    """
    reading = await reading_store.get_reading(db, reading_id)
    if reading is None:
        raise NotFoundError("Data not found")
    return ReadingOut.model_validate(reading)


@router.put("/{reading_id}", response_model=ReadingMessage)
async def update_data(
    reading_id: ReadingId,
    payload: ReadingUpdate,
    admin: AdminUser,
    db: DbSession,
) -> ReadingMessage:
    """Apply a partial update to a reading.

    Raises:
        InputValidationError: 400 on an empty body or invalid values.
        NotFoundError: 404 if the reading does not exist.
        ConflictError: 409 if the change duplicates another reading.
    """
    reading = await reading_store.update_reading(db, reading_id, payload.to_patch())
    if reading is None:
        raise NotFoundError("Data not found")
    return ReadingMessage(message="Data updated successfully", data=ReadingOut.model_validate(reading))


@router.delete("/{reading_id}", response_model=DeletedMessage)
async def delete_data(reading_id: ReadingId, admin: AdminUser, db: DbSession) -> DeletedMessage:
    """Delete a reading.

    Raises:
        NotFoundError: 404 if the reading does not exist.
    """
    if not await reading_store.delete_reading(db, reading_id):
        raise NotFoundError("Data not found")
    return DeletedMessage(message="Data deleted successfully", id=reading_id)
