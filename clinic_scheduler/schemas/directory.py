"""Doctor and patient directory schemas."""

from datetime import date, datetime
from enum import Enum
from typing import Self
from uuid import UUID

from pydantic import (
    BaseModel,
    EmailStr,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from clinic_scheduler.core.exceptions import InvalidInputException
from clinic_scheduler.core.slots import format_clock_time, parse_clock_time


class Specialty(str, Enum):
    """Doctor specialty enumeration."""

    CARDIOLOGIST = "Cardiologist"
    DERMATOLOGIST = "Dermatologist"
    NEUROLOGIST = "Neurologist"
    PEDIATRICIAN = "Pediatrician"
    ORTHOPEDIC_SURGEON = "Orthopedic Surgeon"
    GYNECOLOGIST = "Gynecologist"
    PSYCHIATRIST = "Psychiatrist"
    OTHER = "Other"


class Weekday(str, Enum):
    """Day of week for published availability."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


# ============================================================================
# Summaries (projections used by the appointment engine)
# ============================================================================


class DoctorSummary(BaseModel):
    """Public projection of a doctor."""

    id: UUID
    first_name: str
    last_name: str
    specialty: str

    @property
    def full_name(self) -> str:
        """Display name."""
        return f"Dr. {self.first_name} {self.last_name}"


class PatientSummary(BaseModel):
    """Projection of a patient shown to their doctors."""

    id: UUID
    first_name: str
    last_name: str


class PatientContact(PatientSummary):
    """Patient projection used for notifications only."""

    email: str


# ============================================================================
# Doctor
# ============================================================================


class AvailabilityWindow(BaseModel):
    """A weekly window a doctor publishes as available."""

    day: Weekday
    start_time: str
    end_time: str
    consultation_locations: list[str] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock_time(cls, v: str, info: ValidationInfo) -> str:
        """Validate HH:MM format. Only the end may be 24:00."""
        try:
            minutes = parse_clock_time(v, end_of_day=info.field_name == "end_time")
        except InvalidInputException as e:
            raise ValueError(e.message) from e
        return format_clock_time(minutes)

    @model_validator(mode="after")
    def validate_ordering(self) -> Self:
        """Validate window is not empty."""
        if parse_clock_time(self.start_time) >= parse_clock_time(self.end_time, end_of_day=True):
            raise ValueError("Availability start must be before end")
        return self


class DoctorSignup(BaseModel):
    """Schema for doctor sign-up."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=64)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    specialty: Specialty
    experience_years: int = Field(..., ge=0, le=50)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    contact_number: str = Field(..., min_length=7, max_length=20)
    availability_slots: list[AvailabilityWindow] = Field(default_factory=list)


class DoctorProfile(BaseModel):
    """Doctor profile returned to the doctor. Never carries credentials."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    specialty: str
    experience_years: int | None = None
    city: str
    state: str
    contact_number: str
    availability_slots: list[AvailabilityWindow] = Field(default_factory=list)
    is_verified: bool
    profile_picture_url: str | None = None
    created_at: datetime
    updated_at: datetime


class DoctorProfileUpdate(BaseModel):
    """Schema for a doctor updating their own profile. Omitted fields are left as is."""

    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    specialty: Specialty | None = None
    experience_years: int | None = Field(None, ge=0, le=50)
    city: str | None = Field(None, min_length=1, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)
    contact_number: str | None = Field(None, min_length=7, max_length=20)
    availability_slots: list[AvailabilityWindow] | None = None


class DoctorListing(DoctorSummary):
    """Doctor as listed in patient search results."""

    experience_years: int | None = None
    city: str
    state: str
    availability_slots: list[AvailabilityWindow] = Field(default_factory=list)
    is_verified: bool
    profile_picture_url: str | None = None


class DoctorSearchResponse(BaseModel):
    """Doctors matching a patient search."""

    doctors: list[DoctorListing]
    count: int


class DoctorProfileUpdateResponse(BaseModel):
    """Result of a profile update."""

    message: str
    doctor: DoctorProfile


# ============================================================================
# Patient
# ============================================================================


class PatientSignup(BaseModel):
    """Schema for patient sign-up."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=64)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    date_of_birth: date | None = None
    contact_number: str | None = Field(None, max_length=20)
    street: str | None = None
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)


class PatientProfile(BaseModel):
    """Patient profile returned to the patient. Never carries credentials."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    contact_number: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    created_at: datetime
    updated_at: datetime


class SignupResponse(BaseModel):
    """Result of a successful sign-up."""

    message: str
    id: UUID
