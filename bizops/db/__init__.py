"""Database helpers (store handle and declarative base export)."""

from .session import Base, Database

__all__ = ["Base", "Database"]
