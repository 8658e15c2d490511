"""Appointment service: booking, status transitions and listings."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date
from uuid import UUID

import structlog
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import (
    DoctorNotFoundException,
    NotFoundOrAlreadyFinalException,
    SlotUnavailableException,
    StaleStateException,
    UnavailableException,
)
from clinic_scheduler.core.locks import SlotLockRegistry, acquire_advisory_lock, slot_locks
from clinic_scheduler.database import unit_of_work
from clinic_scheduler.schemas.appointments import (
    AppointmentBook,
    AppointmentResponse,
    AppointmentStatus,
    DoctorAppointmentList,
    DoctorAppointmentResponse,
    PatientAppointmentList,
    PatientAppointmentResponse,
)
from clinic_scheduler.schemas.directory import DoctorSummary, PatientContact, PatientSummary
from clinic_scheduler.services.appointment_store import AppointmentStore
from clinic_scheduler.services.directory_service import DirectoryService
from clinic_scheduler.services.notification_service import Notifier

logger = structlog.get_logger(__name__)

# PostgreSQL serialization failure and deadlock
RETRYABLE_SQLSTATES = ("40001", "40P01")


class AppointmentService:
    """Service for booking and managing appointments."""

    def __init__(
        self,
        db: AsyncSession,
        directory: DirectoryService | None = None,
        notifier: Notifier | None = None,
        locks: SlotLockRegistry = slot_locks,
        timeout: float | None = None,
    ):
        """
        Initialize service.

        Args:
            db: Database session, used for exactly one operation at a time
            directory: Doctor/patient lookups
            notifier: Fire-and-forget notification hook
            locks: Per doctor-day lock registry shared by all requests
            timeout: Seconds a unit of work may take, lock wait included
        """
        self.db = db
        self.store = AppointmentStore(db)
        self.directory = directory or DirectoryService()
        self.notifier = notifier
        self.locks = locks
        self.timeout = settings.unit_of_work_timeout_seconds if timeout is None else timeout

    @asynccontextmanager
    async def _unit_of_work(
        self,
        operation: str,
        lock_key: tuple[UUID, date] | None = None,
    ) -> AsyncIterator[None]:
        """
        Atomic, time-bounded block of store calls.

        Transient storage failures and timeouts surface as ``UnavailableException``
        after the transaction has been rolled back.
        """
        try:
            async with asyncio.timeout(self.timeout):
                async with AsyncExitStack() as stack:
                    if lock_key is not None:
                        await stack.enter_async_context(self.locks.hold(*lock_key))
                    await stack.enter_async_context(unit_of_work(self.db))
                    yield
        except TimeoutError as e:
            logger.warning("unit_of_work_timeout", operation=operation, timeout=self.timeout)
            raise UnavailableException() from e
        except OperationalError as e:
            logger.warning("unit_of_work_unavailable", operation=operation, error=str(e.orig))
            raise UnavailableException() from e
        except DBAPIError as e:
            sqlstate = getattr(e.orig, "sqlstate", None) or getattr(e.orig, "pgcode", None)
            if e.connection_invalidated or sqlstate in RETRYABLE_SQLSTATES:
                logger.warning("unit_of_work_unavailable", operation=operation, error=str(e.orig))
                raise UnavailableException() from e
            raise

    def _notify(
        self,
        event: str,
        appointment: AppointmentResponse,
        doctor: DoctorSummary | None,
        patient: PatientContact | None,
    ) -> None:
        if self.notifier is None:
            return

        try:
            if event == "booked":
                self.notifier.notify_booked(appointment, doctor, patient)
            else:
                self.notifier.notify_cancelled(appointment, doctor, patient)
        except Exception as e:
            # Log error but don't fail the request
            logger.warning(
                "failed_to_queue_appointment_notification",
                notification_event=event,
                appointment_id=str(appointment.id),
                error=str(e),
            )

    async def book_appointment(
        self,
        patient_id: UUID,
        data: AppointmentBook,
    ) -> AppointmentResponse:
        """
        Book a slot with a doctor.

        The doctor check, conflict query and insert run as one unit of work
        while holding the doctor-day lock, so two overlapping requests can
        never both commit.

        Args:
            patient_id: Authenticated patient
            data: Validated booking request

        Returns:
            The created appointment

        Raises:
            InvalidInputException: If the slot is malformed
            DoctorNotFoundException: If the doctor does not exist
            SlotUnavailableException: If the slot overlaps a live appointment
            UnavailableException: On timeout or transient storage failure
        """
        slot = data.slot

        async with self._unit_of_work("book", lock_key=(data.doctor_id, slot.day)):
            await acquire_advisory_lock(self.db, data.doctor_id, slot.day)

            doctor = await self.directory.get_doctor(self.db, data.doctor_id)
            if doctor is None:
                raise DoctorNotFoundException()

            conflict = await self.store.find_conflicting(data.doctor_id, slot)
            if conflict is not None:
                logger.info(
                    "appointment_slot_conflict",
                    doctor_id=str(data.doctor_id),
                    appointment_date=slot.day.isoformat(),
                    requested=f"{slot.start_time}-{slot.end_time}",
                    conflicting_appointment_id=str(conflict["id"]),
                )
                raise SlotUnavailableException()

            row = await self.store.insert(
                patient_id=patient_id,
                doctor_id=data.doctor_id,
                slot=slot,
                consultation_location=data.consultation_location,
                notes=data.notes,
            )
            patient = await self.directory.get_patient_contact(self.db, patient_id)

        appointment = AppointmentResponse.from_row(row)
        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            doctor_id=str(appointment.doctor_id),
            patient_id=str(patient_id),
            appointment_date=slot.day.isoformat(),
            start_time=slot.start_time,
            end_time=slot.end_time,
        )

        self._notify("booked", appointment, doctor, patient)
        return appointment

    async def _transition(
        self,
        operation: str,
        appointment_id: UUID,
        new_status: AppointmentStatus,
        *,
        patient_id: UUID | None = None,
        doctor_id: UUID | None = None,
        message: str,
    ) -> RowMapping:
        async with self._unit_of_work(operation):
            try:
                return await self.store.update_status(
                    appointment_id,
                    AppointmentStatus.SCHEDULED,
                    new_status,
                    patient_id=patient_id,
                    doctor_id=doctor_id,
                )
            except StaleStateException as e:
                raise NotFoundOrAlreadyFinalException(message) from e

    async def cancel_appointment(
        self,
        appointment_id: UUID,
        patient_id: UUID,
    ) -> AppointmentResponse:
        """
        Cancel one of the patient's scheduled appointments.

        Raises:
            NotFoundOrAlreadyFinalException: If the appointment does not exist,
                belongs to another patient, or is no longer scheduled
            UnavailableException: On timeout or transient storage failure
        """
        row = await self._transition(
            "cancel",
            appointment_id,
            AppointmentStatus.CANCELLED,
            patient_id=patient_id,
            message="Appointment not found or already cancelled",
        )
        appointment = AppointmentResponse.from_row(row)
        logger.info(
            "appointment_cancelled",
            appointment_id=str(appointment.id),
            patient_id=str(patient_id),
            version=appointment.version,
        )

        try:
            doctor = await self.directory.get_doctor(self.db, appointment.doctor_id)
            patient = await self.directory.get_patient_contact(self.db, patient_id)
        except Exception as e:
            logger.warning(
                "notification_context_unavailable",
                appointment_id=str(appointment.id),
                error=str(e),
            )
        else:
            self._notify("cancelled", appointment, doctor, patient)

        return appointment

    async def complete_appointment(
        self,
        appointment_id: UUID,
        doctor_id: UUID,
    ) -> AppointmentResponse:
        """
        Mark one of the doctor's scheduled appointments as completed.

        Raises:
            NotFoundOrAlreadyFinalException: If the appointment does not exist,
                belongs to another doctor, or is no longer scheduled
        """
        row = await self._transition(
            "complete",
            appointment_id,
            AppointmentStatus.COMPLETED,
            doctor_id=doctor_id,
            message="Appointment not found or already finalized",
        )
        appointment = AppointmentResponse.from_row(row)
        logger.info(
            "appointment_completed",
            appointment_id=str(appointment.id),
            doctor_id=str(doctor_id),
            version=appointment.version,
        )
        return appointment

    async def list_patient_appointments(
        self,
        patient_id: UUID,
        status: AppointmentStatus | None = None,
    ) -> PatientAppointmentList:
        """List a patient's appointments, cancelled ones included, with doctor details."""
        rows = await self.store.list_for_patient(patient_id, status)

        items = [
            PatientAppointmentResponse.from_row(
                row,
                doctor=(
                    DoctorSummary(
                        id=row["doctor_id"],
                        first_name=row["doctor_first_name"],
                        last_name=row["doctor_last_name"],
                        specialty=row["doctor_specialty"],
                    )
                    if row["doctor_first_name"] is not None
                    else None
                ),
            )
            for row in rows
        ]
        return PatientAppointmentList(appointments=items, count=len(items))

    async def list_doctor_appointments(
        self,
        doctor_id: UUID,
        status: AppointmentStatus | None = None,
    ) -> DoctorAppointmentList:
        """List a doctor's appointments, cancelled ones included, with patient names."""
        rows = await self.store.list_for_doctor(doctor_id, status)

        items = [
            DoctorAppointmentResponse.from_row(
                row,
                patient=(
                    PatientSummary(
                        id=row["patient_id"],
                        first_name=row["patient_first_name"],
                        last_name=row["patient_last_name"],
                    )
                    if row["patient_first_name"] is not None
                    else None
                ),
            )
            for row in rows
        ]
        return DoctorAppointmentList(appointments=items, count=len(items))
