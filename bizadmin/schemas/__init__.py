"""Pydantic request/response schemas."""

from bizadmin.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    Pagination,
    PublicUser,
    RegisterRequest,
    RegisterResponse,
    TokenClaims,
    TokenResponse,
    UserListItem,
    UsersListResponse,
)
from bizadmin.schemas.health import HealthResponse

__all__ = [
    "ChangePasswordRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "Pagination",
    "PublicUser",
    "RegisterRequest",
    "RegisterResponse",
    "TokenClaims",
    "TokenResponse",
    "UserListItem",
    "UsersListResponse",
]
