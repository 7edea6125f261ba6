"""Authentication flows: registration, login, session verification/refresh, password change."""

from __future__ import annotations

import logging
import math
import secrets
import string
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from fastapi import Response
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bizadmin.core.errors import (
    ConflictError,
    InternalError,
    UnauthorizedError,
    ValidationFailedError,
)
from bizadmin.core.security import (
    create_access_token,
    decode_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from bizadmin.models import AuthUser
from bizadmin.schemas.auth import RegisterRequest, password_length_error
from bizadmin.services.mailer import (
    MailDeliveryError,
    MailNotConfiguredError,
    SmtpMailer,
    welcome_email,
)

if TYPE_CHECKING:
    from bizadmin.core.config import Settings

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "auth_token"

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

GENERATED_PASSWORD_ALPHABET = string.ascii_letters + string.digits


@dataclass
class RegistrationResult:
    user: AuthUser
    # None in password mode; True/False for whether the generated password was emailed.
    credentials_emailed: bool | None = None


@dataclass
class IssuedSession:
    user: AuthUser
    token: str
    max_age: int


def generate_password(length: int) -> str:
    return "".join(secrets.choice(GENERATED_PASSWORD_ALPHABET) for _ in range(length))


def _resolve_role(body: RegisterRequest, settings: Settings) -> str:
    if body.role == "admin" and not settings.ALLOW_SELF_ASSIGNED_ROLE:
        logger.warning(
            "Self-assigned admin role ignored on registration",
            extra={"email": body.email},
        )
        return "user"
    return body.role


def register_user(
    db: Session,
    body: RegisterRequest,
    settings: Settings,
    mailer: SmtpMailer,
) -> RegistrationResult:
    """
    Create a credential record.

    In "password" mode the client supplies password + confirmation. In "generated"
    mode a random password is created and delivered only by email; delivery failure
    is logged and reported via credentials_emailed but the account is kept.

    The email pre-check is a fast path only; the unique constraint decides races.
    """
    generated = settings.REGISTRATION_MODE == "generated"
    if generated:
        raw_password = generate_password(settings.GENERATED_PASSWORD_LENGTH)
    else:
        if not body.password or not body.confirm_password:
            raise ValidationFailedError("All fields are required")
        length_error = password_length_error(body.password)
        if length_error:
            raise ValidationFailedError("Validation failed", errors=[length_error])
        if body.password != body.confirm_password:
            raise ValidationFailedError("Passwords do not match")
        raw_password = body.password

    if db.query(AuthUser.id).filter(AuthUser.email == body.email).first() is not None:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = AuthUser(
        name=body.name,
        email=body.email,
        password_hash=hash_password(raw_password, settings.BCRYPT_ROUNDS),
        role=_resolve_role(body, settings),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError("Server error during registration") from e
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id, "mode": settings.REGISTRATION_MODE})

    if not generated:
        return RegistrationResult(user=user)

    try:
        mailer.send(welcome_email(user.name, user.email, raw_password))
    except (MailNotConfiguredError, MailDeliveryError) as e:
        logger.error(
            "Welcome email not delivered; account was created without credentials delivery",
            extra={"user_id": user.id, "reason": e.message[:500]},
        )
        return RegistrationResult(user=user, credentials_emailed=False)
    return RegistrationResult(user=user, credentials_emailed=True)


def authenticate(db: Session, email: str, password: str, settings: Settings) -> AuthUser:
    """Return the account for valid credentials; one generic failure for every other case."""
    user = db.query(AuthUser).filter(AuthUser.email == email).first()
    if user is None:
        verify_password(password, dummy_password_hash(settings.BCRYPT_ROUNDS))
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE, code="invalid_credentials")
    if not verify_password(password, user.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE, code="invalid_credentials")
    return user


def load_session_user(db: Session, token: str | None, settings: Settings) -> AuthUser:
    """
    Full session verification: token present, signature and expiry valid, account still exists.

    The account is re-read on every call so deleted users lose access immediately.
    """
    if not token:
        raise UnauthorizedError("Access denied. No token provided.", code="no_token")
    claims = decode_access_token(token, settings)
    user = db.get(AuthUser, claims.user_id)
    if user is None:
        raise UnauthorizedError("Invalid token. User not found.", code="user_not_found")
    return user


def issue_login_session(user: AuthUser, settings: Settings) -> IssuedSession:
    lifetime = timedelta(minutes=settings.JWT_LOGIN_EXPIRE_MINUTES)
    token = create_access_token(user, settings, lifetime)
    return IssuedSession(user=user, token=token, max_age=int(lifetime.total_seconds()))


def refresh_session(db: Session, token: str | None, settings: Settings) -> IssuedSession:
    """Re-verify the current session and mint a shorter-lived replacement token."""
    user = load_session_user(db, token, settings)
    lifetime = timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES)
    new_token = create_access_token(user, settings, lifetime)
    return IssuedSession(user=user, token=new_token, max_age=int(lifetime.total_seconds()))


def set_session_cookie(response: Response, session: IssuedSession, settings: Settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session.token,
        max_age=session.max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def change_password(
    db: Session,
    user: AuthUser,
    current_password: str,
    new_password: str,
    settings: Settings,
) -> bool:
    """
    Replace the user's password. Returns False when the new password equals the
    current one, in which case the stored hash is left untouched.
    """
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailedError("Current password is incorrect")
    if verify_password(new_password, user.password_hash):
        return False
    user.password_hash = hash_password(new_password, settings.BCRYPT_ROUNDS)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError("Server error during password change") from e
    logger.info("Password changed", extra={"user_id": user.id})
    return True


def list_users(db: Session, page: int, limit: int) -> tuple[list[AuthUser], dict[str, int]]:
    """Return one page of accounts, newest first, with pagination metadata."""
    try:
        total = db.query(func.count(AuthUser.id)).scalar() or 0
        users = (
            db.query(AuthUser)
            .order_by(AuthUser.created_at.desc(), AuthUser.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        raise InternalError("Unable to fetch users") from e
    pagination = {
        "current_page": page,
        "total_pages": math.ceil(total / limit),
        "total_users": total,
        "limit": limit,
    }
    return users, pagination
