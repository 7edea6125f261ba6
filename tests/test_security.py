"""Unit tests for bizadmin.core.security: bcrypt hashing and JWT issue/verify."""

import unittest
from datetime import timedelta
from types import SimpleNamespace

import jwt

from bizadmin.core.config import Settings
from bizadmin.core.errors import InternalError, UnauthorizedError
from bizadmin.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

SECRET = "unit-test-secret-key-with-32-plus-bytes"


def _settings(**overrides: object) -> Settings:
    """Build settings isolated from the environment and any .env file."""
    values = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": SECRET,
        "BCRYPT_ROUNDS": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _user(**kwargs: object) -> SimpleNamespace:
    defaults = {"id": 7, "name": "Ann", "email": "ann@x.com", "role": "user"}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestHashPassword(unittest.TestCase):
    """hash_password produces salted bcrypt hashes; verify_password checks them."""

    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("secret1", rounds=4)
        self.assertNotEqual(hashed, "secret1")
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(verify_password("secret1", hashed))

    def test_same_password_gets_different_salts(self) -> None:
        self.assertNotEqual(hash_password("secret1", rounds=4), hash_password("secret1", rounds=4))

    def test_wrong_password_fails(self) -> None:
        hashed = hash_password("secret1", rounds=4)
        self.assertFalse(verify_password("secret2", hashed))

    def test_malformed_stored_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("secret1", "not-a-bcrypt-hash"))

    def test_long_password_is_truncated_not_rejected(self) -> None:
        long_pw = "a" * 100
        hashed = hash_password(long_pw, rounds=4)
        self.assertTrue(verify_password(long_pw, hashed))

    def test_invalid_rounds_raise_internal_error(self) -> None:
        with self.assertRaises(InternalError):
            hash_password("secret1", rounds=1)


class TestTokenRoundTrip(unittest.TestCase):
    """decode_access_token(create_access_token(user)) returns the same identity claims."""

    def test_claims_round_trip(self) -> None:
        settings = _settings()
        user = _user(id=42, name="Bob", email="bob@x.com", role="admin")
        token = create_access_token(user, settings, timedelta(hours=24))
        claims = decode_access_token(token, settings)
        self.assertEqual(claims.user_id, 42)
        self.assertEqual(claims.sub, "42")
        self.assertEqual(claims.email, "bob@x.com")
        self.assertEqual(claims.name, "Bob")
        self.assertEqual(claims.role, "admin")
        self.assertAlmostEqual(
            (claims.exp - claims.iat).total_seconds(), timedelta(hours=24).total_seconds(), delta=1
        )

    def test_login_and_refresh_lifetimes_differ(self) -> None:
        settings = _settings()
        long_claims = decode_access_token(
            create_access_token(_user(), settings, timedelta(minutes=settings.JWT_LOGIN_EXPIRE_MINUTES)),
            settings,
        )
        short_claims = decode_access_token(
            create_access_token(_user(), settings, timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES)),
            settings,
        )
        self.assertGreater(long_claims.exp, short_claims.exp)


class TestTokenVerificationFailures(unittest.TestCase):
    """Expired tokens are distinguishable from otherwise invalid ones."""

    def test_expired_token_reports_expired(self) -> None:
        settings = _settings()
        token = create_access_token(_user(), settings, timedelta(seconds=-30))
        with self.assertRaises(UnauthorizedError) as ctx:
            decode_access_token(token, settings)
        self.assertEqual(ctx.exception.code, "token_expired")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_wrong_secret_reports_invalid(self) -> None:
        token = create_access_token(_user(), _settings(), timedelta(hours=1))
        other = _settings(JWT_SECRET="another-secret-key-with-32-plus-bytes!!")
        with self.assertRaises(UnauthorizedError) as ctx:
            decode_access_token(token, other)
        self.assertEqual(ctx.exception.code, "token_invalid")

    def test_garbage_token_reports_invalid(self) -> None:
        with self.assertRaises(UnauthorizedError) as ctx:
            decode_access_token("not.a.jwt", _settings())
        self.assertEqual(ctx.exception.code, "token_invalid")

    def test_non_numeric_subject_reports_invalid(self) -> None:
        token = jwt.encode(
            {
                "sub": "abc",
                "email": "ann@x.com",
                "name": "Ann",
                "role": "user",
                "iat": 1_700_000_000,
                "exp": 4_000_000_000,
            },
            SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(UnauthorizedError) as ctx:
            decode_access_token(token, _settings())
        self.assertEqual(ctx.exception.code, "token_invalid")

    def test_missing_exp_reports_invalid(self) -> None:
        token = jwt.encode({"sub": "1", "iat": 1_700_000_000}, SECRET, algorithm="HS256")
        with self.assertRaises(UnauthorizedError) as ctx:
            decode_access_token(token, _settings())
        self.assertEqual(ctx.exception.code, "token_invalid")


if __name__ == "__main__":
    unittest.main()
