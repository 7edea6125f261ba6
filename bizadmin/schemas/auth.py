"""Request/response schemas for auth endpoints."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

NAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

Role = Literal["user", "admin"]


def _normalize_email(v: str) -> str:
    email = v.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email address")
    return email


def password_length_error(password: str) -> str | None:
    """Return a field-level message when the raw password is out of bounds, else None."""
    if len(password) < PASSWORD_MIN_LEN:
        return f"password: must be at least {PASSWORD_MIN_LEN} characters"
    if len(password) > PASSWORD_MAX_LEN:
        return f"password: must be at most {PASSWORD_MAX_LEN} characters"
    return None


class RegisterRequest(BaseModel):
    """
    Registration body. password/confirmPassword are only used in password mode,
    where the service checks their length; generated mode ignores them entirely.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., max_length=NAME_MAX_LEN, description="Display name")
    email: str = Field(..., max_length=255, description="Login email")
    password: str | None = None
    confirm_password: str | None = Field(default=None, alias="confirmPassword")
    role: Role = "user"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Login email")
    password: str = Field(
        ..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ChangePasswordRequest(BaseModel):
    """Body for changing the current user's password."""

    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(
        ..., alias="currentPassword", min_length=1, max_length=PASSWORD_MAX_LEN
    )
    new_password: str = Field(
        ..., alias="newPassword", min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )


class TokenClaims(BaseModel):
    """Decoded session token claims."""

    sub: str
    email: str
    name: str
    role: Role
    iat: datetime
    exp: datetime

    @field_validator("sub")
    @classmethod
    def validate_sub(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError("sub must be a numeric user id")
        return v

    @property
    def user_id(self) -> int:
        return int(self.sub)


class CurrentUser(BaseModel):
    """Authenticated user (no password hash) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role


class PublicUser(BaseModel):
    """User fields returned from register/login/refresh."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "User registered successfully"
    user: PublicUser
    credentials_emailed: bool | None = Field(
        default=None,
        description="Generated-password mode only: whether the welcome email was delivered",
    )


class TokenResponse(BaseModel):
    """Session token returned after login or refresh (also set as an http-only cookie)."""

    success: bool = True
    message: str
    token: str
    user: PublicUser


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class UserListItem(BaseModel):
    """User entry for the account list (no password). Serialized with the SPA's camelCase keys."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    email: str
    role: Role
    created_at: datetime | None = Field(alias="createdAt")


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_users: int = Field(alias="totalUsers")
    limit: int


class UsersListResponse(BaseModel):
    """Response for GET /auth/users."""

    success: bool = True
    users: list[UserListItem]
    pagination: Pagination
