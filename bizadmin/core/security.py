"""Password hashing and JWT creation/verification for session tokens."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt
from pydantic import ValidationError

from bizadmin.core.errors import InternalError, UnauthorizedError
from bizadmin.schemas.auth import TokenClaims

if TYPE_CHECKING:
    from bizadmin.core.config import Settings
    from bizadmin.models.user import AuthUser

# bcrypt only considers the first 72 bytes.
BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str, rounds: int) -> str:
    """Hash a plain-text password for storage with a fresh per-call salt."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise InternalError("Password hashing failed") from e


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int) -> str:
    """Hash compared against when the email is unknown, so login timing does not reveal it."""
    return hash_password("dummy-password-for-timing", rounds)


def create_access_token(
    user: "AuthUser",
    settings: "Settings",
    expires_delta: timedelta,
) -> str:
    """Create a signed JWT carrying the user's id (sub), email, name and role."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "iat": now,
        "exp": now + expires_delta,
    }
    try:
        return jwt.encode(
            payload,
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
    except (jwt.PyJWTError, NotImplementedError, TypeError) as e:
        raise InternalError("Token signing failed") from e


def decode_access_token(token: str, settings: "Settings") -> TokenClaims:
    """
    Validate signature and expiry and return the token's claims.

    Raises UnauthorizedError with code "token_expired" when exp is in the past,
    and "token_invalid" for any other failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise UnauthorizedError(
            "Token expired. Please login again.", code="token_expired"
        ) from e
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Invalid token.", code="token_invalid") from e
    try:
        return TokenClaims.model_validate(payload)
    except ValidationError as e:
        raise UnauthorizedError("Invalid token.", code="token_invalid") from e
