"""
Security Utilities.

Password hashing, access tokens, and role checks.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from notekeeper.backend.core.config import get_app_config, get_settings
from notekeeper.backend.core.exceptions import AuthenticationError, AuthorizationError
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.core.utils import utc_now
from notekeeper.backend.models.user import UserRole

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """Resolved caller identity attached to every authenticated request."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


# bcrypt only reads the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = _password_bytes(password)
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        _password_bytes(plain_password),
        hashed_password.encode("utf-8"),
    )


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode (must contain "sub")
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    to_encode = data.copy()

    now = utc_now()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=jwt_config.access_token_expire_minutes)

    to_encode.update({
        "iat": now,
        "exp": expire,
        "type": "access",
        "aud": jwt_config.audience,
    })
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)
    return encoded_jwt


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        AuthenticationError: If token is invalid, expired, or not an access token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != "access":
        logger.warning("Token rejected", extra={"reason": "wrong_type"})
        raise AuthenticationError("Invalid or expired token")
    if not payload.get("sub"):
        logger.warning("Token rejected", extra={"reason": "missing_subject"})
        raise AuthenticationError("Invalid or expired token")
    return payload


def ensure_role(identity: Identity, allowed_roles: Iterable[str]) -> None:
    """
    Reject the caller unless their role is one of allowed_roles.

    Raises:
        ValueError: If allowed_roles is empty (programming error)
        AuthorizationError: If identity.role is not allowed
    """
    allowed = frozenset(allowed_roles)
    if not allowed:
        raise ValueError("allowed_roles must not be empty")
    if identity.role not in allowed:
        logger.warning(
            "Role check failed",
            extra={"user_id": identity.user_id, "role": identity.role, "allowed": sorted(allowed)},
        )
        raise AuthorizationError("Insufficient role for this operation")
