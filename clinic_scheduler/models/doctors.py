"""Doctor directory table using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    false,
)

from clinic_scheduler.models.base import metadata, utcnow

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Credentials
    Column("email", String(320), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    # Profile
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("specialty", String(50), nullable=False, index=True),
    Column("experience_years", Integer),
    Column("city", String(100), nullable=False),
    Column("state", String(100), nullable=False),
    Column("contact_number", String(20), nullable=False),
    # Published weekly availability (informational, not enforced on booking)
    Column("availability_slots", JSON),
    Column("is_verified", Boolean, nullable=False, default=False, server_default=false()),
    Column("profile_picture_url", Text),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    CheckConstraint(
        "experience_years IS NULL OR (experience_years >= 0 AND experience_years <= 50)",
        name="doctors_experience_check",
    ),
)
