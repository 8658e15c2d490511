"""Directory service: doctor and patient profiles consumed by the scheduler."""

from uuid import UUID

import structlog
from sqlalchemy import Table, and_, func, insert, or_, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import ConflictException
from clinic_scheduler.core.redis_client import CacheManager
from clinic_scheduler.core.security import get_password_hash
from clinic_scheduler.models.base import utcnow
from clinic_scheduler.models.doctors import doctors
from clinic_scheduler.models.patients import patients
from clinic_scheduler.schemas.auth import ActorRole
from clinic_scheduler.schemas.directory import (
    DoctorListing,
    DoctorProfile,
    DoctorProfileUpdate,
    DoctorSignup,
    DoctorSummary,
    PatientContact,
    PatientProfile,
    PatientSignup,
)

logger = structlog.get_logger(__name__)

# Explicit allow-lists: credential columns are never selected for projections.
DOCTOR_SUMMARY_COLUMNS = (
    doctors.c.id,
    doctors.c.first_name,
    doctors.c.last_name,
    doctors.c.specialty,
)
PATIENT_SUMMARY_COLUMNS = (
    patients.c.id,
    patients.c.first_name,
    patients.c.last_name,
)
DOCTOR_LISTING_COLUMNS = (
    *DOCTOR_SUMMARY_COLUMNS,
    doctors.c.experience_years,
    doctors.c.city,
    doctors.c.state,
    doctors.c.availability_slots,
    doctors.c.is_verified,
    doctors.c.profile_picture_url,
)
DOCTOR_PROFILE_COLUMNS = tuple(c for c in doctors.c if c.name != "password_hash")
PATIENT_PROFILE_COLUMNS = tuple(
    c for c in patients.c if c.name not in ("password_hash", "medical_history")
)


class DirectoryService:
    """Service for doctor and patient directory operations."""

    # Cache TTL in seconds
    DOCTOR_CACHE_TTL = 900  # 15 minutes for doctor summaries

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_doctor_cache_key(doctor_id: UUID) -> str:
        """Generate cache key for doctor summary."""
        return f"doctor:summary:{doctor_id}"

    async def _email_taken(self, db: AsyncSession, table: Table, email: str) -> bool:
        result = await db.execute(select(table.c.id).where(table.c.email == email))
        return result.first() is not None

    async def create_doctor(self, db: AsyncSession, data: DoctorSignup) -> UUID:
        """
        Register a doctor.

        Raises:
            ConflictException: If the e-mail is already registered
        """
        email = data.email.lower()
        if await self._email_taken(db, doctors, email):
            raise ConflictException("Doctor already exists")

        stmt = (
            insert(doctors)
            .values(
                email=email,
                password_hash=get_password_hash(data.password),
                first_name=data.first_name,
                last_name=data.last_name,
                specialty=data.specialty.value,
                experience_years=data.experience_years,
                city=data.city,
                state=data.state,
                contact_number=data.contact_number,
                availability_slots=[w.model_dump(mode="json") for w in data.availability_slots],
            )
            .returning(doctors.c.id)
        )

        try:
            result = await db.execute(stmt)
            doctor_id = result.scalar_one()
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictException("Doctor already exists")

        logger.info("doctor_registered", doctor_id=str(doctor_id))
        return doctor_id

    async def create_patient(self, db: AsyncSession, data: PatientSignup) -> UUID:
        """
        Register a patient.

        Raises:
            ConflictException: If the e-mail is already registered
        """
        email = data.email.lower()
        if await self._email_taken(db, patients, email):
            raise ConflictException("Patient already exists")

        stmt = (
            insert(patients)
            .values(
                email=email,
                password_hash=get_password_hash(data.password),
                **data.model_dump(exclude={"email", "password"}),
            )
            .returning(patients.c.id)
        )

        try:
            result = await db.execute(stmt)
            patient_id = result.scalar_one()
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictException("Patient already exists")

        logger.info("patient_registered", patient_id=str(patient_id))
        return patient_id

    async def get_doctor(self, db: AsyncSession, doctor_id: UUID) -> DoctorSummary | None:
        """Get doctor summary by ID with caching."""
        # Try cache first
        if self.cache:
            cached = self.cache.get_json(self._get_doctor_cache_key(doctor_id))
            if cached:
                return DoctorSummary.model_validate(cached)

        result = await db.execute(select(*DOCTOR_SUMMARY_COLUMNS).where(doctors.c.id == doctor_id))
        row = result.mappings().first()

        if not row:
            return None

        summary = DoctorSummary.model_validate(dict(row))

        # Cache result
        if self.cache:
            self.cache.set_json(
                self._get_doctor_cache_key(doctor_id),
                summary.model_dump(mode="json"),
                ttl=self.DOCTOR_CACHE_TTL,
            )

        return summary

    async def get_doctor_profile(self, db: AsyncSession, doctor_id: UUID) -> DoctorProfile | None:
        """Get full doctor profile without credentials."""
        result = await db.execute(select(*DOCTOR_PROFILE_COLUMNS).where(doctors.c.id == doctor_id))
        row = result.mappings().first()

        if not row:
            return None

        profile = dict(row)
        profile["availability_slots"] = profile["availability_slots"] or []
        return DoctorProfile.model_validate(profile)

    async def search_doctors(
        self,
        db: AsyncSession,
        specialty: str | None = None,
        city: str | None = None,
        state: str | None = None,
        name: str | None = None,
    ) -> list[DoctorListing]:
        """Search doctors by specialty, location and a case-insensitive name fragment."""
        conditions: list = []

        if specialty:
            conditions.append(doctors.c.specialty == specialty)

        if city:
            conditions.append(doctors.c.city == city)

        if state:
            conditions.append(doctors.c.state == state)

        if name:
            pattern = f"%{name.lower()}%"
            conditions.append(
                or_(
                    func.lower(doctors.c.first_name).like(pattern),
                    func.lower(doctors.c.last_name).like(pattern),
                )
            )

        query = (
            select(*DOCTOR_LISTING_COLUMNS)
            .where(and_(*conditions) if conditions else True)
            .order_by(doctors.c.last_name, doctors.c.first_name)
        )

        result = await db.execute(query)
        listings = []
        for row in result.mappings().all():
            doctor = dict(row)
            doctor["availability_slots"] = doctor["availability_slots"] or []
            listings.append(DoctorListing.model_validate(doctor))

        return listings

    async def update_doctor_profile(
        self, db: AsyncSession, doctor_id: UUID, data: DoctorProfileUpdate
    ) -> DoctorProfile | None:
        """Update a doctor's own profile, including published availability."""
        update_values = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)

        if not update_values:
            return await self.get_doctor_profile(db, doctor_id)

        query = (
            update(doctors)
            .where(doctors.c.id == doctor_id)
            .values(**update_values, updated_at=utcnow())
            .returning(*DOCTOR_PROFILE_COLUMNS)
        )

        result = await db.execute(query)
        updated_doctor = result.mappings().first()

        await db.commit()

        if not updated_doctor:
            return None

        # Invalidate cache
        if self.cache:
            self.cache.delete(self._get_doctor_cache_key(doctor_id))

        logger.info(
            "doctor_profile_updated", doctor_id=str(doctor_id), fields=sorted(update_values)
        )

        profile = dict(updated_doctor)
        profile["availability_slots"] = profile["availability_slots"] or []
        return DoctorProfile.model_validate(profile)

    async def get_patient_profile(
        self, db: AsyncSession, patient_id: UUID
    ) -> PatientProfile | None:
        """Get patient profile without credentials or medical history."""
        result = await db.execute(
            select(*PATIENT_PROFILE_COLUMNS).where(patients.c.id == patient_id)
        )
        row = result.mappings().first()
        return PatientProfile.model_validate(dict(row)) if row else None

    async def get_patient_contact(
        self, db: AsyncSession, patient_id: UUID
    ) -> PatientContact | None:
        """Get the name and e-mail needed to notify a patient."""
        result = await db.execute(
            select(*PATIENT_SUMMARY_COLUMNS, patients.c.email).where(patients.c.id == patient_id)
        )
        row = result.mappings().first()
        return PatientContact.model_validate(dict(row)) if row else None

    async def get_credentials(
        self, db: AsyncSession, role: ActorRole, email: str
    ) -> RowMapping | None:
        """Look up the id and password hash of an account for login."""
        table = doctors if role == ActorRole.DOCTOR else patients
        result = await db.execute(
            select(table.c.id, table.c.email, table.c.password_hash).where(
                table.c.email == email.lower()
            )
        )
        return result.mappings().first()
