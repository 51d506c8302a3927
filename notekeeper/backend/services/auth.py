"""
Auth Service.

Registration, login, and profile lookup. Issues signed access tokens.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.config import get_app_config
from notekeeper.backend.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
)
from notekeeper.backend.core.security import (
    Identity,
    create_access_token,
    hash_password,
    verify_password,
)
from notekeeper.backend.models.user import User, UserRole
from notekeeper.backend.repositories.user import UserRepository
from notekeeper.backend.schemas.user import LoginRequest, RegisterRequest
from notekeeper.backend.services.base import BaseService


class AuthService(BaseService):
    """Service for account creation and credential checks."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = UserRepository(session)

    @staticmethod
    def token_lifetime_seconds() -> int:
        return get_app_config().security.jwt.access_token_expire_minutes * 60

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token({"sub": user.id, "role": user.role})

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create an account with a hashed password.

        Raises:
            ValidationError: If the password breaks the length policy
            ConflictError: If username or email is already registered
        """
        policy = get_app_config().security.password
        self._validate_string_length(
            password,
            "password",
            min_length=policy.min_length,
            max_length=policy.max_length,
        )

        email = email.strip().lower()
        if await self.repo.exists_by_username_or_email(username, email):
            raise ConflictError("Username or email already registered")

        self._log_operation("Creating user", username=username, role=role.value)
        user = await self._execute_db_operation(
            "create_user",
            self.repo.create(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=role.value,
            ),
        )
        self._log_debug("User created", user_id=user.id)
        return user

    async def register(self, data: RegisterRequest) -> tuple[User, str]:
        """
        Self-register a regular user.

        Returns:
            Tuple of (user, access token)

        Raises:
            AuthorizationError: If open registration is disabled
        """
        if not get_app_config().features.auth_registration_enabled:
            raise AuthorizationError("Registration is disabled")

        user = await self.create_user(data.username, data.email, data.password)
        return user, self.issue_token(user)

    async def login(self, data: LoginRequest) -> tuple[User, str]:
        """
        Verify email and password.

        Returns:
            Tuple of (user, access token)

        Raises:
            AuthenticationError: On unknown email or wrong password
        """
        user = await self.repo.get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            self._logger.warning("Login failed", extra={"reason": "invalid_credentials"})
            raise AuthenticationError("Invalid credentials")

        self._log_operation("User logged in", user_id=user.id)
        return user, self.issue_token(user)

    async def get_profile(self, identity: Identity) -> User:
        """Return the caller's own account."""
        return await self.repo.get_by_id(identity.user_id)
