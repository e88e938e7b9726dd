# leadcapture/db/__init__.py
"""
Database package for SQLAlchemy setup, session management, and base models.
"""

from leadcapture.db.base import Base, as_utc
from leadcapture.db.session import create_all, create_database_engine, get_session

__all__ = [
    "Base",
    "as_utc",
    "create_all",
    "create_database_engine",
    "get_session",
]
