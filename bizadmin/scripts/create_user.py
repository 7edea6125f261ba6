"""
Create an account (e.g. the first admin) without going through /auth/register.
Run from project root:
  python -m bizadmin.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m bizadmin.scripts.create_user "Site Admin" admin@example.com your-secure-password admin
"""
import argparse
import sys

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from bizadmin.core.config import get_settings
from bizadmin.core.database import build_engine, build_session_factory
from bizadmin.core.security import hash_password
from bizadmin.models.user import ROLES, AuthUser
from bizadmin.schemas.auth import (
    NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    RegisterRequest,
    password_length_error,
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a login account.")
    parser.add_argument("name", help=f"Display name (1-{NAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Login email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="user", choices=ROLES)
    args = parser.parse_args(argv)

    try:
        body = RegisterRequest(
            name=args.name,
            email=args.email,
            password=args.password,
            confirm_password=args.password,
            role=args.role,
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"{field}: {err['msg']}", file=sys.stderr)
        return 1
    length_error = password_length_error(args.password)
    if length_error:
        print(length_error, file=sys.stderr)
        return 1

    settings = get_settings()
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        existing = db.query(AuthUser).filter(AuthUser.email == body.email).first()
        if existing:
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        user = AuthUser(
            name=body.name,
            email=body.email,
            password_hash=hash_password(args.password, settings.BCRYPT_ROUNDS),
            role=body.role,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        print(f"Created user '{body.email}' with role '{body.role}'.")
        return 0
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
