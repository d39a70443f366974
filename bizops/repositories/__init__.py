"""
Persistence adapters.

Services depend on EntityStore rather than touching SQLAlchemy sessions
directly; ``where`` mappings are translated by ``filters.build_criteria``.
"""

from .sql_repository import EntityStore, Page

__all__ = ["EntityStore", "Page"]
