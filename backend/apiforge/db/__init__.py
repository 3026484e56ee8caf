"""Database module."""

from apiforge.db.base import Base
from apiforge.db.session import async_session_factory, engine

__all__ = ["Base", "async_session_factory", "engine"]
