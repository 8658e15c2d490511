"""Authentication endpoints."""

from fastapi import APIRouter, status

from clinic_scheduler.dependencies import DatabaseSession, Directory
from clinic_scheduler.schemas.auth import LoginRequest, LoginResponse
from clinic_scheduler.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Log in as doctor or patient",
)
async def login(
    request: LoginRequest,
    db: DatabaseSession,
    directory: Directory,
) -> LoginResponse:
    """
    Verify e-mail and password for the given role and return an access token.

    Args:
        request: E-mail, password and role
        db: Database session
        directory: Directory service

    Returns:
        Bearer token scoped to the role
    """
    return await AuthService(directory).login(db, request)


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Log out",
)
async def logout() -> dict[str, str]:
    """
    Tokens are stateless; the client discards its token.

    Returns:
        Acknowledgement message
    """
    return {"message": "Logout successful"}
