"""Relational persistence for users and deployed projects."""

from .session import Base, create_engine, create_session_factory, create_all
from .repository import ProjectRepository, SqlProjectRepository

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "create_all",
    "ProjectRepository",
    "SqlProjectRepository",
]
