"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import Appointments, CurrentDoctorId, CurrentPatientId
from clinic_scheduler.schemas.appointments import (
    AppointmentActionResponse,
    AppointmentBook,
    AppointmentStatus,
    BookingResponse,
    DoctorAppointmentList,
    PatientAppointmentList,
)

router = APIRouter()


@router.post(
    "/book",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Book an appointment",
    responses={
        400: {"description": "Invalid input"},
        404: {"description": "Doctor not found"},
        409: {"description": "Slot already booked"},
        503: {"description": "Storage busy, retry the whole request"},
    },
)
async def book_appointment(
    data: AppointmentBook,
    patient_id: CurrentPatientId,
    service: Appointments,
) -> BookingResponse:
    """
    Book a slot with a doctor for the authenticated patient.

    Args:
        data: Doctor, date, start/end time (HH:MM) and location
        patient_id: Authenticated patient
        service: Appointment service

    Returns:
        Id of the new appointment
    """
    appointment = await service.book_appointment(patient_id, data)
    return BookingResponse(appointment_id=appointment.id)


@router.put(
    "/cancel/{appointment_id}",
    response_model=AppointmentActionResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel an appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    patient_id: CurrentPatientId,
    service: Appointments,
) -> AppointmentActionResponse:
    """
    Cancel one of the authenticated patient's scheduled appointments.

    Returns 404 whether the appointment is missing, owned by someone else or
    already cancelled.
    """
    appointment = await service.cancel_appointment(appointment_id, patient_id)
    return AppointmentActionResponse(
        message="Appointment cancelled successfully",
        appointment=appointment,
    )


@router.put(
    "/complete/{appointment_id}",
    response_model=AppointmentActionResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Mark an appointment as completed",
)
async def complete_appointment(
    appointment_id: UUID,
    doctor_id: CurrentDoctorId,
    service: Appointments,
) -> AppointmentActionResponse:
    """Mark one of the authenticated doctor's scheduled appointments as completed."""
    appointment = await service.complete_appointment(appointment_id, doctor_id)
    return AppointmentActionResponse(
        message="Appointment completed successfully",
        appointment=appointment,
    )


@router.get(
    "/patient",
    response_model=PatientAppointmentList,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List the patient's appointments",
)
async def list_patient_appointments(
    patient_id: CurrentPatientId,
    service: Appointments,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
) -> PatientAppointmentList:
    """
    List appointments of the authenticated patient.

    Args:
        patient_id: Authenticated patient
        service: Appointment service
        status_filter: Optional status filter

    Returns:
        Appointments with doctor name and specialty, and their count
    """
    return await service.list_patient_appointments(patient_id, status_filter)


@router.get(
    "/doctor",
    response_model=DoctorAppointmentList,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List the doctor's appointments",
)
async def list_doctor_appointments(
    doctor_id: CurrentDoctorId,
    service: Appointments,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
) -> DoctorAppointmentList:
    """
    List appointments of the authenticated doctor.

    Args:
        doctor_id: Authenticated doctor
        service: Appointment service
        status_filter: Optional status filter

    Returns:
        Appointments with patient name, and their count
    """
    return await service.list_doctor_appointments(doctor_id, status_filter)
