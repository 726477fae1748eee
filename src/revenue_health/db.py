"""Snapshot store: one SQLite file per data directory.

The file lives at ``$DATA_DIR/data.db`` (``~/.revenue-health`` when DATA_DIR
is unset). The engine is created on first use and bound to whatever
DATA_DIR held at that moment; ``close_db`` unbinds it so the next use picks
the directory up again.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "~/.revenue-health"
DB_FILENAME = "data.db"

# Applied to every new connection. WAL lets history reads run during a snapshot write.
SQLITE_PRAGMAS = ("journal_mode=WAL", "synchronous=NORMAL", "busy_timeout=5000")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_db_path() -> Path:
    """Location of the snapshot database; its directory is created on demand."""
    data_dir = Path(os.environ.get("DATA_DIR") or DEFAULT_DATA_DIR).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DB_FILENAME


def _configure_connection(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(f"PRAGMA {pragma}")
    finally:
        cursor.close()


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        db_path = get_db_path()
        _engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
        event.listen(_engine.sync_engine, "connect", _configure_connection)
        logger.debug("Snapshot store bound to %s", db_path)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Snapshots are serialized after commit, so keep their loaded attributes.
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One transaction: committed when the block exits, rolled back if it raises."""
    async with get_session_factory()() as session:
        async with session.begin():
            yield session


async def init_db():
    """Create the snapshot table and its indexes when missing."""
    from .sqlmodels import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Snapshot store ready at %s", get_db_path())


async def close_db():
    """Dispose of the engine; the next use rebinds to the current DATA_DIR."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
