"""SQLAlchemy declarative Base shared by the credential store models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; alembic autogenerate reads Base.metadata."""
