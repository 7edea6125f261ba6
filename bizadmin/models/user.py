"""ORM model for authentication accounts (credential store)."""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func

from bizadmin.models.base import Base

ROLES = ("user", "admin")


class AuthUser(Base):
    """
    Login identity for cookie-based JWT sessions.

    email is stored lower-cased and is unique; password_hash is always a bcrypt hash.
    role: 'admin' or 'user'
    """

    __tablename__ = "authusers"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_authusers_role"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="user", server_default="user")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
