"""Doctor directory endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from clinic_scheduler.core.exceptions import DoctorNotFoundException
from clinic_scheduler.dependencies import CurrentDoctorId, DatabaseSession, Directory
from clinic_scheduler.schemas.directory import (
    DoctorProfile,
    DoctorProfileUpdate,
    DoctorProfileUpdateResponse,
    DoctorSignup,
    DoctorSummary,
    SignupResponse,
)

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a doctor",
)
async def signup(
    data: DoctorSignup,
    db: DatabaseSession,
    directory: Directory,
) -> SignupResponse:
    """
    Register a new doctor account.

    - **email**: Login e-mail (unique)
    - **password**: 8-64 characters
    - **specialty**: One of the supported specialties
    - **availability_slots**: Weekly windows with consultation locations
    """
    doctor_id = await directory.create_doctor(db, data)
    return SignupResponse(message="Doctor signup successful", id=doctor_id)


@router.get("/profile", response_model=DoctorProfile, summary="Get own doctor profile")
async def get_profile(
    doctor_id: CurrentDoctorId,
    db: DatabaseSession,
    directory: Directory,
) -> DoctorProfile:
    """Get the authenticated doctor's profile."""
    profile = await directory.get_doctor_profile(db, doctor_id)
    if profile is None:
        raise DoctorNotFoundException("Doctor profile not found")
    return profile


@router.put(
    "/profile",
    response_model=DoctorProfileUpdateResponse,
    summary="Update own doctor profile",
)
async def update_profile(
    data: DoctorProfileUpdate,
    doctor_id: CurrentDoctorId,
    db: DatabaseSession,
    directory: Directory,
) -> DoctorProfileUpdateResponse:
    """
    Update the authenticated doctor's profile.

    Only the fields sent are changed. Sending **availability_slots** replaces
    the published weekly windows.
    """
    profile = await directory.update_doctor_profile(db, doctor_id, data)
    if profile is None:
        raise DoctorNotFoundException()
    return DoctorProfileUpdateResponse(message="Profile updated successfully", doctor=profile)


@router.get("/{doctor_id}", response_model=DoctorSummary, summary="Get doctor summary")
async def get_doctor(
    doctor_id: UUID,
    db: DatabaseSession,
    directory: Directory,
) -> DoctorSummary:
    """Get the public summary of a doctor."""
    doctor = await directory.get_doctor(db, doctor_id)
    if doctor is None:
        raise DoctorNotFoundException()
    return doctor
