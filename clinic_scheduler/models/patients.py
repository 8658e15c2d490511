"""Patient directory table using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import JSON, Column, Date, DateTime, String, Table, Text, Uuid

from clinic_scheduler.models.base import metadata, utcnow

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Credentials
    Column("email", String(320), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),
    # Personal information
    Column("first_name", String(50), nullable=False),
    Column("last_name", String(50), nullable=False),
    Column("date_of_birth", Date),
    Column("contact_number", String(20)),
    # Address information
    Column("street", Text),
    Column("city", String(100)),
    Column("state", String(100)),
    Column("postal_code", String(20)),
    # Medical information
    Column("medical_history", JSON),
    Column("profile_picture_url", Text),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
)
