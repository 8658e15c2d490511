"""FastAPI dependencies."""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.redis_client import CacheManager, get_cache_manager
from clinic_scheduler.core.security import decode_access_token
from clinic_scheduler.database import get_db
from clinic_scheduler.schemas.auth import ActorRole
from clinic_scheduler.services.appointment_service import AppointmentService
from clinic_scheduler.services.directory_service import DirectoryService
from clinic_scheduler.services.notification_service import Notifier, get_notifier

# Security
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the identity layer."""

    id: UUID
    role: ActorRole


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Actor:
    """
    Extract and validate the caller's id and role from the JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Authenticated actor

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if credentials is None:
        raise _unauthorized("No authentication token provided")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    actor_id = payload.get("sub")
    role = payload.get("role")
    if not isinstance(actor_id, str) or role not in {r.value for r in ActorRole}:
        raise _unauthorized("Could not validate credentials")

    try:
        return Actor(id=UUID(actor_id), role=ActorRole(role))
    except ValueError:
        raise _unauthorized("Invalid user ID format")


async def get_current_patient_id(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> UUID:
    """Require a patient token."""
    if actor.role != ActorRole.PATIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access restricted to patients only",
        )
    return actor.id


async def get_current_doctor_id(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> UUID:
    """Require a doctor token."""
    if actor.role != ActorRole.DOCTOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access restricted to doctors only",
        )
    return actor.id


def get_directory_service(
    cache_manager: Annotated[CacheManager | None, Depends(get_cache_manager)],
) -> DirectoryService:
    """Get directory service instance."""
    return DirectoryService(cache_manager=cache_manager)


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    directory: Annotated[DirectoryService, Depends(get_directory_service)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
) -> AppointmentService:
    """Get appointment service bound to the request's session."""
    return AppointmentService(db, directory=directory, notifier=notifier)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentPatientId = Annotated[UUID, Depends(get_current_patient_id)]
CurrentDoctorId = Annotated[UUID, Depends(get_current_doctor_id)]
Directory = Annotated[DirectoryService, Depends(get_directory_service)]
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
