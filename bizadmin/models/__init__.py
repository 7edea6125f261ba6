"""SQLAlchemy ORM models."""

from bizadmin.models.base import Base
from bizadmin.models.user import AuthUser

__all__ = ["AuthUser", "Base"]
