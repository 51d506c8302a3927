"""
User and Auth Schemas.

Registration, login, and user representations. Password hashes
never appear in any response schema.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from notekeeper.backend.models.user import UserRole


class RegisterRequest(BaseModel):
    """Schema for self-registration. The role is always `user`."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[A-Za-z0-9_.-]+$",
        examples=["alice"],
    )
    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., min_length=1, max_length=128)

    model_config = ConfigDict(extra="forbid")

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(BaseModel):
    """Schema for login by email and password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class UserResponse(BaseModel):
    """Public user record."""

    id: str
    username: str
    email: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """User plus a freshly issued access token."""

    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
