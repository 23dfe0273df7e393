"""Database package."""
from naijapulse.db.session import engine, SessionLocal, get_db, get_db_context
from naijapulse.db.base import Base

__all__ = ["engine", "SessionLocal", "get_db", "get_db_context", "Base"]
