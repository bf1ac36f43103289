"""Async SQLAlchemy engine, session factory and schema creation."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Base class for the ORM models to inherit from
Base = declarative_base()


def _ensure_sqlite_parent_dir(url: str) -> None:
    """Create the directory of a file-backed SQLite database."""
    if not url.startswith("sqlite"):
        return
    db_path = urlparse(url).path
    if not db_path or db_path in ("/", "/:memory:"):
        return
    # "sqlite+aiosqlite:///./data/x.db" parses to "/./data/x.db"
    if db_path.startswith("/./") or db_path.startswith("/../"):
        db_path = db_path[1:]
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for ``url`` (e.g. sqlite+aiosqlite:///./data/crux.sqlite3)."""
    _ensure_sqlite_parent_dir(url)
    logger.info(f"[DB] Using URL: {url}")
    return create_async_engine(url, future=True, echo=echo)


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the registered models."""
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
