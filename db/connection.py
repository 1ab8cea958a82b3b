"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool, since the HTTP layer runs
synchronous handlers on a worker thread pool.
"""

from typing import Optional

import psycopg2
from psycopg2 import pool

from config import Settings
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: Optional[pool.ThreadedConnectionPool] = None


def init_pool(settings: Optional[Settings] = None) -> None:
    """
    Initialize the database connection pool.

    Args:
        settings: Connection string and pool bounds. Defaults to the environment.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    settings = settings or Settings.from_env()
    try:
        _pool = pool.ThreadedConnectionPool(
            settings.pool_min, settings.pool_max, settings.database_url
        )
        logger.info("Database connection pool initialized successfully.")
    except psycopg2.OperationalError as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise


def get_connection():
    """
    Get a connection from the pool.

    Returns:
        A psycopg2 connection object.

    Raises:
        RuntimeError: If the pool has not been initialized.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    """
    Return a connection back to the pool.

    Args:
        conn: The psycopg2 connection to release.
    """
    if _pool is not None:
        _pool.putconn(conn)


def close_pool() -> None:
    """Close all connections in the pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("Database connection pool closed.")
