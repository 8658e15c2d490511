"""Create appointments table with slot constraints.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:10:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("doctor_id", sa.Uuid(), nullable=False),
        sa.Column("patient_id", sa.Uuid(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_minute", sa.Integer(), nullable=False),
        sa.Column("end_minute", sa.Integer(), nullable=False),
        sa.Column("consultation_location", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="scheduled", nullable=False),
        sa.Column("payment_status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded')",
            name="appointments_payment_status_check",
        ),
        sa.CheckConstraint(
            "start_minute >= 0 AND end_minute <= 1440 AND start_minute < end_minute",
            name="appointments_slot_range_check",
        ),
        sa.CheckConstraint(
            "notes IS NULL OR length(notes) <= 500",
            name="appointments_notes_length_check",
        ),
        sa.ForeignKeyConstraint(["doctor_id"], ["doctors.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create indexes
    op.create_index(
        "ix_appointments_doctor_date_status",
        "appointments",
        ["doctor_id", "appointment_date", "status"],
    )
    op.create_index(
        "ix_appointments_patient_date_status",
        "appointments",
        ["patient_id", "appointment_date", "status"],
    )
    op.create_index(
        "uq_appointments_live_slot_start",
        "appointments",
        ["doctor_id", "appointment_date", "start_minute"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status != 'cancelled'"),
    )

    # Overlapping live intervals are rejected by the database itself
    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE appointments
            ADD CONSTRAINT ex_appointments_live_slot_overlap
            EXCLUDE USING gist (
                doctor_id WITH =,
                appointment_date WITH =,
                int4range(start_minute, end_minute) WITH &&
            )
            WHERE (status <> 'cancelled')
            """
        )


def downgrade() -> None:
    """Downgrade database schema."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute(
            "ALTER TABLE appointments DROP CONSTRAINT IF EXISTS ex_appointments_live_slot_overlap"
        )

    op.drop_index("uq_appointments_live_slot_start", table_name="appointments")
    op.drop_index("ix_appointments_patient_date_status", table_name="appointments")
    op.drop_index("ix_appointments_doctor_date_status", table_name="appointments")
    op.drop_table("appointments")
