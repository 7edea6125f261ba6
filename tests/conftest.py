"""Test environment: keep app import-time settings off real Postgres/SMTP and any local .env."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-at-least-32-bytes"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("APP_ENV", "dev")
os.environ.pop("SMTP_HOST", None)
