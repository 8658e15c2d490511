"""Appointment schemas for request/response validation."""

from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from clinic_scheduler.core.exceptions import InvalidInputException
from clinic_scheduler.core.slots import Slot, format_clock_time, parse_clock_time
from clinic_scheduler.schemas.directory import DoctorSummary, PatientSummary


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


def normalize_clock_time(value: str, end_of_day: bool = False) -> str:
    """Validate an ``HH:MM`` string for pydantic and return it zero-padded."""
    try:
        return format_clock_time(parse_clock_time(value, end_of_day=end_of_day))
    except InvalidInputException as e:
        raise ValueError(e.message) from e


class AppointmentBook(BaseModel):
    """Schema for booking a new appointment."""

    doctor_id: UUID
    appointment_date: date
    start_time: str = Field(..., examples=["09:00"])
    end_time: str = Field(..., examples=["09:30"])
    consultation_location: str = Field(..., min_length=1, max_length=200)
    notes: str | None = Field(None, max_length=500)

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        """Validate HH:MM format."""
        return normalize_clock_time(v)

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: str) -> str:
        """Validate HH:MM format; 24:00 closes the day."""
        return normalize_clock_time(v, end_of_day=True)

    @field_validator("consultation_location")
    @classmethod
    def validate_location(cls, v: str) -> str:
        """Reject blank locations."""
        if not v.strip():
            raise ValueError("Consultation location must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def validate_ordering(self) -> Self:
        """Validate start time is before end time."""
        if parse_clock_time(self.start_time) >= parse_clock_time(self.end_time, end_of_day=True):
            raise ValueError("Start time must be before end time")
        return self

    @property
    def slot(self) -> Slot:
        """The requested slot."""
        return Slot.from_clock(self.appointment_date, self.start_time, self.end_time)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    doctor_id: UUID
    patient_id: UUID
    appointment_date: date
    start_time: str
    end_time: str
    consultation_location: str
    status: AppointmentStatus
    payment_status: PaymentStatus
    notes: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any], **extra: Any) -> Self:
        """Build a response from an ``appointments`` row mapping."""
        return cls(
            id=row["id"],
            doctor_id=row["doctor_id"],
            patient_id=row["patient_id"],
            appointment_date=row["appointment_date"],
            start_time=format_clock_time(row["start_minute"]),
            end_time=format_clock_time(row["end_minute"]),
            consultation_location=row["consultation_location"],
            status=row["status"],
            payment_status=row["payment_status"],
            notes=row["notes"],
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            cancelled_at=row["cancelled_at"],
            completed_at=row["completed_at"],
            **extra,
        )


class PatientAppointmentResponse(AppointmentResponse):
    """Appointment as seen by the patient, with the doctor projected in."""

    doctor: DoctorSummary | None = None


class DoctorAppointmentResponse(AppointmentResponse):
    """Appointment as seen by the doctor, with the patient projected in."""

    patient: PatientSummary | None = None


class PatientAppointmentList(BaseModel):
    """Listing of a patient's appointments."""

    appointments: list[PatientAppointmentResponse]
    count: int


class DoctorAppointmentList(BaseModel):
    """Listing of a doctor's appointments."""

    appointments: list[DoctorAppointmentResponse]
    count: int


class BookingResponse(BaseModel):
    """Result of a successful booking."""

    message: str = "Appointment booked successfully"
    appointment_id: UUID


class AppointmentActionResponse(BaseModel):
    """Result of a status transition."""

    message: str
    appointment: AppointmentResponse
