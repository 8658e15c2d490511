"""Shared table metadata."""

from datetime import UTC, datetime

from sqlalchemy import MetaData

# Single metadata so that foreign keys between directory and appointment
# tables resolve for create_all and Alembic autogenerate.
metadata = MetaData()


def utcnow() -> datetime:
    """Timezone-aware current time used as a column default."""
    return datetime.now(UTC)
