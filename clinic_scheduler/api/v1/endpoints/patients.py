"""Patient directory endpoints."""

from fastapi import APIRouter, Query, status

from clinic_scheduler.core.exceptions import NotFoundException
from clinic_scheduler.dependencies import CurrentPatientId, DatabaseSession, Directory
from clinic_scheduler.schemas.directory import (
    DoctorSearchResponse,
    PatientProfile,
    PatientSignup,
    SignupResponse,
    Specialty,
)

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a patient",
)
async def signup(
    data: PatientSignup,
    db: DatabaseSession,
    directory: Directory,
) -> SignupResponse:
    """Register a new patient account."""
    patient_id = await directory.create_patient(db, data)
    return SignupResponse(message="Patient signup successful", id=patient_id)


@router.get("/profile", response_model=PatientProfile, summary="Get own patient profile")
async def get_profile(
    patient_id: CurrentPatientId,
    db: DatabaseSession,
    directory: Directory,
) -> PatientProfile:
    """Get the authenticated patient's profile."""
    profile = await directory.get_patient_profile(db, patient_id)
    if profile is None:
        raise NotFoundException("Patient profile not found")
    return profile


@router.get(
    "/search-doctors",
    response_model=DoctorSearchResponse,
    summary="Search doctors",
)
async def search_doctors(
    db: DatabaseSession,
    directory: Directory,
    specialty: Specialty | None = Query(None, description="Exact specialty"),
    city: str | None = Query(None, max_length=100),
    state: str | None = Query(None, max_length=100),
    name: str | None = Query(None, max_length=50, description="Part of a first or last name"),
) -> DoctorSearchResponse:
    """
    Search the doctor directory.

    All filters are optional and combine with AND. **name** matches first or
    last name without regard to case.
    """
    doctors = await directory.search_doctors(
        db,
        specialty=specialty.value if specialty else None,
        city=city,
        state=state,
        name=name,
    )
    return DoctorSearchResponse(doctors=doctors, count=len(doctors))
