"""Database session helpers."""

from src.db.session import AsyncSessionLocal, engine, get_db

__all__ = [
    "AsyncSessionLocal",
    "engine",
    "get_db",
]
