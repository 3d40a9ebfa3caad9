"""
First-boot seeding: the initial admin account and bundled sample readings.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import logging
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from energymon.config import Settings
from energymon.errors import MalformedInputError
from energymon.services.ingestion import IngestResult, ingest_csv
from energymon.services.readings import count_readings
from energymon.services.users import create_user, get_user_by_username

logger = logging.getLogger(__name__)


async def seed_admin(db: AsyncSession, settings: Settings) -> bool:
    """Create the FIRST_SUPERUSER admin if it does not exist.

    Returns:
        bool: True if the user was created.
    """
    if await get_user_by_username(db, settings.first_superuser) is not None:
        logger.info("Admin user '%s' already present", settings.first_superuser)
        return False
    await create_user(
        db,
        settings.first_superuser,
        settings.first_superuser_password,
        is_admin=True,
    )
    logger.info("Seeded admin user '%s'", settings.first_superuser)
    return True


async def seed_sample_data(db: AsyncSession, settings: Settings) -> IngestResult | None:
    """Load the bundled sample CSV into an empty energy_data table.

    Failures are logged and skipped; the sample is a convenience and must not
    block startup.

    Returns:
        IngestResult | None: Ingest counts, or None if nothing was loaded.
    """
    path = Path(settings.sample_data_path)
    if not path.is_file():
        logger.info("No sample data at %s, skipping", path)
        return None

    try:
        if await count_readings(db) > 0:
            logger.info("energy_data already populated, skipping sample data")
            return None
        result = await ingest_csv(db, path.read_bytes(), settings.ingest_batch_size)
    except (OSError, MalformedInputError, SQLAlchemyError):
        logger.exception("Failed to load sample data from %s", path)
        await db.rollback()
        return None

    logger.info(
        "Seeded %d/%d sample reading(s) from %s",
        result.records_inserted,
        result.records_processed,
        path,
    )
    return result


async def seed_database(db: AsyncSession, settings: Settings) -> None:
    """Run all first-boot seeding steps.

    Raises:
        SQLAlchemyError: If the admin account cannot be created.
    """
    await seed_admin(db, settings)
    await seed_sample_data(db, settings)
