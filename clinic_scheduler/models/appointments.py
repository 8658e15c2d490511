"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from clinic_scheduler.models.base import metadata, utcnow

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references (immutable after insert)
    Column("doctor_id", Uuid, ForeignKey("doctors.id", ondelete="RESTRICT"), nullable=False),
    Column("patient_id", Uuid, ForeignKey("patients.id", ondelete="RESTRICT"), nullable=False),
    # Slot: day bucket plus minutes since midnight, half-open [start, end)
    Column("appointment_date", Date, nullable=False),
    Column("start_minute", Integer, nullable=False),
    Column("end_minute", Integer, nullable=False),
    Column("consultation_location", String(200), nullable=False),
    # Status management
    Column("status", String(20), nullable=False, default="scheduled", server_default="scheduled"),
    Column(
        "payment_status",
        String(20),
        nullable=False,
        default="pending",
        server_default="pending",
    ),
    Column("notes", Text, nullable=True),
    # Optimistic concurrency token, bumped on every mutation
    Column("version", Integer, nullable=False, default=1, server_default=text("1")),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("updated_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "payment_status IN ('pending', 'paid', 'refunded')",
        name="appointments_payment_status_check",
    ),
    CheckConstraint(
        "start_minute >= 0 AND end_minute <= 1440 AND start_minute < end_minute",
        name="appointments_slot_range_check",
    ),
    CheckConstraint(
        "notes IS NULL OR length(notes) <= 500",
        name="appointments_notes_length_check",
    ),
)

# Query patterns: doctor day view and patient listing
Index(
    "ix_appointments_doctor_date_status",
    appointments.c.doctor_id,
    appointments.c.appointment_date,
    appointments.c.status,
)
Index(
    "ix_appointments_patient_date_status",
    appointments.c.patient_id,
    appointments.c.appointment_date,
    appointments.c.status,
)

# Storage-level guard against two live appointments starting at the same
# minute for one doctor. PostgreSQL additionally gets a range exclusion
# constraint in the migrations.
Index(
    "uq_appointments_live_slot_start",
    appointments.c.doctor_id,
    appointments.c.appointment_date,
    appointments.c.start_minute,
    unique=True,
    sqlite_where=text("status != 'cancelled'"),
    postgresql_where=text("status <> 'cancelled'"),
)
