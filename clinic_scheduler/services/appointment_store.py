"""Persistence for appointments.

All statements run on the caller's session; the caller owns the transaction.
"""

from uuid import UUID

from sqlalchemy import ColumnElement, and_, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import SlotUnavailableException, StaleStateException
from clinic_scheduler.core.slots import Slot
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.base import utcnow
from clinic_scheduler.models.doctors import doctors
from clinic_scheduler.models.patients import patients
from clinic_scheduler.schemas.appointments import AppointmentStatus

# Constraints whose violation means "slot already taken"
SLOT_CONSTRAINT_NAMES = (
    "uq_appointments_live_slot_start",
    "ex_appointments_live_slot_overlap",
)


def overlap_clause(slot: Slot) -> ColumnElement[bool]:
    """SQL form of ``intervals_overlap`` against the stored [start, end) columns."""
    return and_(
        appointments.c.start_minute < slot.end_minute,
        slot.start_minute < appointments.c.end_minute,
    )


def is_slot_violation(exc: IntegrityError) -> bool:
    """Whether an integrity error comes from one of the slot constraints."""
    message = str(exc.orig)
    if any(name in message for name in SLOT_CONSTRAINT_NAMES):
        return True
    # SQLite reports the columns instead of the index name
    return "UNIQUE constraint failed: appointments." in message


class AppointmentStore:
    """Appointment persistence keyed by (doctor_id, date)."""

    def __init__(self, db: AsyncSession):
        """Initialize store with database session."""
        self.db = db

    async def find_conflicting(self, doctor_id: UUID, slot: Slot) -> RowMapping | None:
        """
        Find a live appointment of the doctor overlapping the slot.

        Cancelled appointments never conflict; completed ones still do.
        """
        stmt = (
            select(appointments)
            .where(
                appointments.c.doctor_id == doctor_id,
                appointments.c.appointment_date == slot.day,
                appointments.c.status != AppointmentStatus.CANCELLED.value,
                overlap_clause(slot),
            )
            .order_by(appointments.c.start_minute)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.mappings().first()

    async def insert(
        self,
        patient_id: UUID,
        doctor_id: UUID,
        slot: Slot,
        consultation_location: str,
        notes: str | None = None,
    ) -> RowMapping:
        """
        Persist a new scheduled appointment.

        Raises:
            SlotUnavailableException: If a storage-level slot constraint rejects the row
        """
        now = utcnow()
        stmt = (
            insert(appointments)
            .values(
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=slot.day,
                start_minute=slot.start_minute,
                end_minute=slot.end_minute,
                consultation_location=consultation_location,
                notes=notes,
                status=AppointmentStatus.SCHEDULED.value,
                version=1,
                created_at=now,
                updated_at=now,
            )
            .returning(appointments)
        )

        try:
            result = await self.db.execute(stmt)
        except IntegrityError as e:
            if is_slot_violation(e):
                raise SlotUnavailableException() from e
            raise

        return result.mappings().one()

    async def update_status(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        new_status: AppointmentStatus,
        *,
        patient_id: UUID | None = None,
        doctor_id: UUID | None = None,
    ) -> RowMapping:
        """
        Move an appointment from ``expected_status`` to ``new_status``.

        The guard and the write are one statement, so of several concurrent
        callers exactly one matches the row. Optional owner filters narrow the
        match further.

        Raises:
            StaleStateException: If no row matched
        """
        conditions = [
            appointments.c.id == appointment_id,
            appointments.c.status == expected_status.value,
        ]
        if patient_id is not None:
            conditions.append(appointments.c.patient_id == patient_id)
        if doctor_id is not None:
            conditions.append(appointments.c.doctor_id == doctor_id)

        now = utcnow()
        values = {
            "status": new_status.value,
            "version": appointments.c.version + 1,
            "updated_at": now,
        }
        if new_status == AppointmentStatus.CANCELLED:
            values["cancelled_at"] = now
        elif new_status == AppointmentStatus.COMPLETED:
            values["completed_at"] = now

        stmt = update(appointments).where(*conditions).values(**values).returning(appointments)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if row is None:
            raise StaleStateException()

        return row

    async def list_for_patient(
        self,
        patient_id: UUID,
        status: AppointmentStatus | None = None,
    ) -> list[RowMapping]:
        """List a patient's appointments with the doctor's public columns."""
        conditions = [appointments.c.patient_id == patient_id]
        if status is not None:
            conditions.append(appointments.c.status == status.value)

        stmt = (
            select(
                appointments,
                doctors.c.first_name.label("doctor_first_name"),
                doctors.c.last_name.label("doctor_last_name"),
                doctors.c.specialty.label("doctor_specialty"),
            )
            .select_from(appointments.outerjoin(doctors, appointments.c.doctor_id == doctors.c.id))
            .where(*conditions)
            .order_by(appointments.c.appointment_date, appointments.c.start_minute)
        )
        result = await self.db.execute(stmt)
        return list(result.mappings().all())

    async def list_for_doctor(
        self,
        doctor_id: UUID,
        status: AppointmentStatus | None = None,
    ) -> list[RowMapping]:
        """List a doctor's appointments with the patient's name."""
        conditions = [appointments.c.doctor_id == doctor_id]
        if status is not None:
            conditions.append(appointments.c.status == status.value)

        stmt = (
            select(
                appointments,
                patients.c.first_name.label("patient_first_name"),
                patients.c.last_name.label("patient_last_name"),
            )
            .select_from(
                appointments.outerjoin(patients, appointments.c.patient_id == patients.c.id)
            )
            .where(*conditions)
            .order_by(appointments.c.appointment_date, appointments.c.start_minute)
        )
        result = await self.db.execute(stmt)
        return list(result.mappings().all())
