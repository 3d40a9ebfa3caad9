"""
SQLAlchemy ORM models for the energy monitoring database.

Defines the User credential table and the EnergyReading time-series table.
energy_data carries a unique (timestamp, consumption) constraint so that CSV
re-uploads are idempotent via INSERT ... ON CONFLICT DO NOTHING, and a check
constraint enforcing non-negative consumption at the storage boundary.

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Double,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all ORM models."""

    pass


class User(Base):
    """Dashboard/API user.

    Attributes:
        id: Serial primary key.
        username: Unique login name (3-50 characters).
        password_hash: bcrypt hash, never returned by the API.
        is_admin: Grants access to mutating and user-management routes.
        created_at: Creation timestamp (server default now()).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:
        """Return string representation of the User (no password hash)."""
        return (
            f"User(id={self.id!r}, username={self.username!r}, "
            f"is_admin={self.is_admin!r})"
        )


class EnergyReading(Base):
    """Single energy consumption measurement.

    Attributes:
        id: Serial primary key.
        timestamp: Measurement instant (timezone-aware).
        consumption: Consumed energy in kWh, never negative.
    """

    __tablename__ = "energy_data"
    __table_args__ = (
        CheckConstraint("consumption >= 0", name="ck_energy_data_consumption_non_negative"),
        UniqueConstraint(
            "timestamp", "consumption", name="uq_energy_data_timestamp_consumption"
        ),
        Index("ix_energy_data_timestamp_desc", text("timestamp DESC")),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    consumption: Mapped[float] = mapped_column(Double, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the EnergyReading."""
        return (
            f"EnergyReading(id={self.id!r}, timestamp={self.timestamp!r}, "
            f"consumption={self.consumption!r})"
        )
