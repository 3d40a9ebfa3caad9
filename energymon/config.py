"""
API configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
Secrets (DATABASE_URL, JWT_SECRET) have no defaults and must be provided
through the environment or a .env file.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

from energymon import __version__


class Settings(BaseSettings):
    """Runtime configuration for the energy monitoring API.

    Attributes:
        database_url: SQLAlchemy async URL (postgresql+asyncpg://...).
        jwt_secret: HS256 signing key for access tokens.
        jwt_expires_minutes: Access token lifetime in minutes.
        first_superuser: Username of the admin seeded on first boot.
        first_superuser_password: Password of the seeded admin.
        sample_data_path: Bundled CSV loaded into an empty energy_data table.
        seed_on_startup: Run first-boot seeding from the app lifespan.
        upload_max_bytes: Maximum accepted size of an uploaded CSV file.
        ingest_batch_size: Records per bulk insert statement.
        cors_origins: Comma-separated allowed CORS origins ("*" for any).
        log_level: Root log level name.
        app_version: Version string reported by /health.
    """

    database_url: str
    jwt_secret: str
    jwt_expires_minutes: int = 60
    first_superuser: str = "admin"
    first_superuser_password: str = "admin123"
    sample_data_path: str = "/data/energy_sample.csv"
    seed_on_startup: bool = True
    upload_max_bytes: int = 10 * 1024 * 1024
    ingest_batch_size: int = 1000
    cors_origins: str = "*"
    log_level: str = "INFO"
    app_version: str = __version__

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_must_be_long_enough(cls, v: str) -> str:
        """Reject trivially short signing keys."""
        if len(v) < 16:
            raise ValueError("JWT_SECRET must be at least 16 characters")
        return v

    @field_validator("jwt_expires_minutes")
    @classmethod
    def jwt_expiry_must_be_positive(cls, v: int) -> int:
        """Validate token lifetime is at least one minute."""
        if v < 1:
            raise ValueError("JWT_EXPIRES_MINUTES must be >= 1")
        return v

    @field_validator("first_superuser_password")
    @classmethod
    def superuser_password_min_length(cls, v: str) -> str:
        """Seeded admin password follows the same rule as API-created users."""
        if len(v) < 6:
            raise ValueError("FIRST_SUPERUSER_PASSWORD must be at least 6 characters")
        return v

    @field_validator("upload_max_bytes")
    @classmethod
    def upload_limit_must_be_positive(cls, v: int) -> int:
        """Validate the upload size limit is positive."""
        if v < 1:
            raise ValueError("UPLOAD_MAX_BYTES must be >= 1")
        return v

    @field_validator("ingest_batch_size")
    @classmethod
    def batch_size_must_be_valid(cls, v: int) -> int:
        """Validate batch size is between 1 and 10000."""
        if v < 1 or v > 10000:
            raise ValueError("INGEST_BATCH_SIZE must be >= 1 and <= 10000")
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins split into a list, blanks removed."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings instance.

    Returns:
        Settings: Settings loaded from the environment on first call.
    """
    return Settings()
