"""Core app configuration, database and security."""

from storefront.core.config import Settings, get_settings
from storefront.core.database import Database, get_db

__all__ = ["Database", "Settings", "get_db", "get_settings"]
