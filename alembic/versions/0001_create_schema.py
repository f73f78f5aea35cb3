"""create schema

Properties, users, roles, permissions and their join tables, rooms and
bookings, all taken from the declarative models.
"""
from __future__ import annotations

from alembic import op

import app.models  # noqa: F401  registers every table on Base.metadata
from app.core.database import Base

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
