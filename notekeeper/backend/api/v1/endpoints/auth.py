"""
Auth API Endpoints.

Registration, login, and the caller's profile.
"""

from fastapi import APIRouter

from notekeeper.backend.core.dependencies import CurrentIdentity, DbSession, RequestId
from notekeeper.backend.schemas.base import ApiResponse, ResponseMetadata
from notekeeper.backend.schemas.user import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from notekeeper.backend.services.auth import AuthService

router = APIRouter()


def _auth_response(user, token: str) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=token,
        expires_in=AuthService.token_lifetime_seconds(),
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=201,
    summary="Register",
    description="Create a regular user account and return an access token.",
)
async def register(
    data: RegisterRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AuthResponse]:
    """Register a new user."""
    service = AuthService(db)
    user, token = await service.register(data)
    return ApiResponse(
        data=_auth_response(user, token),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    summary="Log in",
    description="Exchange email and password for an access token.",
)
async def login(
    data: LoginRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AuthResponse]:
    """Log in with email and password."""
    service = AuthService(db)
    user, token = await service.login(data)
    return ApiResponse(
        data=_auth_response(user, token),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/profile",
    response_model=ApiResponse[UserResponse],
    summary="Current user",
)
async def profile(
    db: DbSession,
    identity: CurrentIdentity,
    request_id: RequestId,
) -> ApiResponse[UserResponse]:
    """Return the authenticated user's record."""
    service = AuthService(db)
    user = await service.get_profile(identity)
    return ApiResponse(
        data=UserResponse.model_validate(user),
        metadata=ResponseMetadata(request_id=request_id),
    )
