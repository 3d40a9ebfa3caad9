"""
Initial schema: users and energy_data tables.

Creates the users credential table and the energy_data readings table with
a non-negative consumption check, a unique (timestamp, consumption)
constraint used by CSV ingest's ON CONFLICT DO NOTHING, and a descending
index on timestamp for range scans.

Revision ID: 001
Revises: None
Create Date: 2026-10-15

CHANGELOG:
- 2026-10-15: Initial creation

TODO:
- None
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# Revision identifiers used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users and energy_data with their constraints and index."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column(
            "is_admin",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "energy_data",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumption", sa.Double(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "consumption >= 0", name="ck_energy_data_consumption_non_negative"
        ),
        sa.UniqueConstraint(
            "timestamp", "consumption", name="uq_energy_data_timestamp_consumption"
        ),
    )

    op.create_index(
        "ix_energy_data_timestamp_desc",
        "energy_data",
        [sa.text("timestamp DESC")],
    )


def downgrade() -> None:
    op.drop_index("ix_energy_data_timestamp_desc", table_name="energy_data")
    op.drop_table("energy_data")
    op.drop_table("users")
