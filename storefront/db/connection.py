"""Database connection factory.

Provides singleton async connection to SQLite (default) with WAL mode, or an
asyncpg pool when STOREFRONT_DB_BACKEND=postgres.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union, Any

import aiosqlite
import asyncpg

from storefront import config

logger = logging.getLogger("storefront.db")

DB_PATH = Path(config.DB_PATH)

# Type alias for DB connection/pool
DbConnection = Union[aiosqlite.Connection, Any]  # Any to support asyncpg.Pool

_connection: DbConnection | None = None


async def get_connection() -> DbConnection:
    """Return the singleton database connection/pool, creating it if needed."""
    global _connection
    if _connection is not None:
        return _connection

    if config.DB_BACKEND == "postgres":
        logger.info("Connecting to PostgreSQL")
        _connection = await asyncpg.create_pool(config.DATABASE_URL)
        return _connection

    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(DB_PATH))
    conn.row_factory = aiosqlite.Row
    # WAL for concurrent readers while the admin side writes
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.execute("PRAGMA busy_timeout=5000")
    logger.info(f"Database connection established: {DB_PATH}")
    _connection = conn
    return _connection


async def close_connection() -> None:
    """Close the database connection."""
    global _connection
    if _connection is not None:
        await _connection.close()
        _connection = None
        logger.info("Database connection closed")
