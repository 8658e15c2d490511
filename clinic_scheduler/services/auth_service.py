"""Authentication service for password login and JWT issuance."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import NotFoundException, UnauthorizedException
from clinic_scheduler.core.security import create_actor_token, verify_password
from clinic_scheduler.schemas.auth import LoginRequest, LoginResponse
from clinic_scheduler.services.directory_service import DirectoryService

logger = structlog.get_logger(__name__)


class AuthService:
    """Authentication service issuing role-scoped access tokens."""

    def __init__(self, directory: DirectoryService):
        """Initialize auth service with the directory."""
        self.directory = directory

    async def login(self, db: AsyncSession, request: LoginRequest) -> LoginResponse:
        """
        Verify credentials for a doctor or patient and issue an access token.

        Args:
            db: Database session
            request: E-mail, password and the role to log in as

        Returns:
            Access token and account id

        Raises:
            NotFoundException: If no account with that e-mail exists for the role
            UnauthorizedException: If the password does not match
        """
        account = await self.directory.get_credentials(db, request.role, request.email)

        if account is None:
            raise NotFoundException(f"{request.role.value.capitalize()} not found")

        if not verify_password(request.password, account["password_hash"]):
            logger.info("login_rejected", role=request.role.value)
            raise UnauthorizedException("Invalid credentials")

        token = create_actor_token(account["id"], request.role.value, account["email"])
        logger.info("login_succeeded", role=request.role.value, user_id=str(account["id"]))

        return LoginResponse(
            access_token=token,
            user_id=account["id"],
            role=request.role,
        )
