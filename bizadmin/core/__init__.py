"""Core app configuration, database and errors."""

from bizadmin.core.config import Settings, get_app_settings, get_settings
from bizadmin.core.database import get_db

__all__ = ["Settings", "get_app_settings", "get_settings", "get_db"]
