"""Authentication schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ActorRole(str, Enum):
    """Role carried in access tokens."""

    DOCTOR = "doctor"
    PATIENT = "patient"


class LoginRequest(BaseModel):
    """Universal login request."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=64)
    role: ActorRole


class LoginResponse(BaseModel):
    """Login response with access token."""

    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    role: ActorRole
