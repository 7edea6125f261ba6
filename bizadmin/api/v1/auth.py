"""Cookie-session auth endpoints and the get_current_user dependency."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.security import APIKeyCookie
from sqlalchemy.orm import Session

from bizadmin.core.config import Settings, get_app_settings
from bizadmin.core.database import get_db
from bizadmin.core.errors import UnauthorizedError
from bizadmin.schemas.auth import (
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    Pagination,
    PublicUser,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserListItem,
    UsersListResponse,
)
from bizadmin.services import auth as auth_service
from bizadmin.services.mailer import SmtpMailer, get_mailer

router = APIRouter()
session_cookie = APIKeyCookie(name=auth_service.SESSION_COOKIE_NAME, auto_error=False)


def get_current_user(
    token: Annotated[str | None, Depends(session_cookie)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """Dependency: require a valid session cookie and return the current user. Raises 401 otherwise."""
    user = auth_service.load_session_user(db, token, settings)
    return CurrentUser.model_validate(user)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    mailer: Annotated[SmtpMailer, Depends(get_mailer)],
) -> RegisterResponse:
    """
    Create an account. Depending on REGISTRATION_MODE the client supplies
    password + confirmPassword, or a generated password is emailed to the user.
    The password is never returned.
    """
    result = auth_service.register_user(db, body, settings, mailer)
    return RegisterResponse(
        user=PublicUser.model_validate(result.user),
        credentials_emailed=result.credentials_emailed,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> TokenResponse:
    """Authenticate with email and password; sets the session cookie and returns the token."""
    user = auth_service.authenticate(db, body.email, body.password, settings)
    session = auth_service.issue_login_session(user, settings)
    auth_service.set_session_cookie(response, session, settings)
    return TokenResponse(
        message="Login successful",
        token=session.token,
        user=PublicUser.model_validate(user),
    )


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    token: Annotated[str | None, Depends(session_cookie)],
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> TokenResponse:
    """Re-verify the session cookie and replace it with a fresh, shorter-lived token."""
    session = auth_service.refresh_session(db, token, settings)
    auth_service.set_session_cookie(response, session, settings)
    return TokenResponse(
        message="Token refreshed",
        token=session.token,
        user=PublicUser.model_validate(session.user),
    )


@router.get("/verify", response_model=MessageResponse)
def verify(token: Annotated[str | None, Depends(session_cookie)]) -> MessageResponse:
    """
    Liveness probe: reports whether a session cookie is present.
    Does not validate the token; use /me for a verified identity.
    """
    if not token:
        raise UnauthorizedError("No token found", code="no_token")
    return MessageResponse(message="Token exists")


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    """Clear the session cookie. Always succeeds."""
    auth_service.clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=CurrentUser)
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    return current_user


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    token: Annotated[str | None, Depends(session_cookie)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    """Change the signed-in user's password; an unchanged password keeps the stored hash."""
    user = auth_service.load_session_user(db, token, settings)
    changed = auth_service.change_password(
        db, user, body.current_password, body.new_password, settings
    )
    return MessageResponse(message="Password changed" if changed else "Password unchanged")


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> UsersListResponse:
    """
    List accounts newest first, one page at a time. Keys are camelCase
    (createdAt, currentPage, totalPages, totalUsers) for the admin SPA.

    Requires a valid session cookie: 401 (no_token, token_expired, token_invalid
    or user_not_found) otherwise. The original admin app served this route
    anonymously.
    """
    users, pagination = auth_service.list_users(db, page, limit)
    return UsersListResponse(
        users=[UserListItem.model_validate(u) for u in users],
        pagination=Pagination(**pagination),
    )
