"""Account credentials: bcrypt password hashes and doctor/patient access tokens."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from clinic_scheduler.config import settings

# Doctor and patient passwords share one bcrypt context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a login password against the stored account hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a sign-up password for the ``password_hash`` column."""
    return pwd_context.hash(password)


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign a bearer token for a doctor or patient session.

    Args:
        data: Claims identifying the account: ``sub`` (account id), ``role``
            (``doctor`` or ``patient``) and ``email``
        expires_delta: Session lifetime; defaults to ``ACCESS_TOKEN_EXPIRE_MINUTES``

    Returns:
        Signed token for the ``Authorization: Bearer`` header
    """
    to_encode = data.copy()
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": issued_at + lifetime,
            "iat": issued_at,
            "type": "access",
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Read the account claims from a bearer token.

    Returns:
        The claims, or None when the token is expired, forged or not an access token.
        Role checks are left to the route dependencies.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload


def create_actor_token(actor_id: UUID, role: str, email: str) -> str:
    """Issue an access token scoped to a single doctor or patient account."""
    return create_access_token({"sub": str(actor_id), "role": role, "email": email})
