"""
FastAPI Dependencies.

Shared dependencies for request handling: database session,
request ID, and bearer-token authentication.
"""

import uuid
from typing import Annotated

import structlog
from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.backend.core.database import get_db_session
from notekeeper.backend.core.exceptions import AuthenticationError
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.core.security import Identity, decode_token, ensure_role
from notekeeper.backend.models.user import User
from notekeeper.backend.repositories.user import UserRepository

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

bearer_scheme = HTTPBearer(auto_error=False)


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_user(
    request: Request,
    db: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """
    Resolve the bearer token to an existing user.

    Raises:
        AuthenticationError: Missing header, bad token, or unknown user
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    payload = decode_token(credentials.credentials)
    user = await UserRepository(db).get_by_id_or_none(payload["sub"])
    if user is None:
        logger.warning("Token subject not found", extra={"user_id": payload["sub"]})
        raise AuthenticationError("Invalid or expired token")

    request.state.user_id = user.id
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_current_identity(user: CurrentUser) -> Identity:
    """Identity (user id and role) of the authenticated caller."""
    return Identity(user_id=user.id, role=user.role)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


def require_roles(*roles: str):
    """
    Build a dependency that admits only callers holding one of roles.

    Usage:
        @router.delete("", dependencies=[Depends(require_roles("admin"))])
    """
    if not roles:
        raise ValueError("require_roles needs at least one role")

    async def _check(identity: CurrentIdentity) -> Identity:
        ensure_role(identity, roles)
        return identity

    return _check


AdminIdentity = Annotated[Identity, Depends(require_roles("admin"))]
