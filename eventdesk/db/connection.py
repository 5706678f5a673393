"""
Database Connection Management
PostgreSQL connections with the context manager pattern. The database URL is
always passed in by the caller; this module holds no connection settings.
"""

import psycopg2
from psycopg2.extras import RealDictCursor
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


@contextmanager
def get_db_connection(database_url: str):
    """
    Context manager for database connections.
    Automatically commits on success, rollbacks on error, and closes connection.

    Usage:
        with get_db_connection(url) as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM events")
            results = cur.fetchall()
    """
    if not database_url:
        raise ValueError("No database URL given")

    conn = None
    try:
        conn = psycopg2.connect(database_url)
        logger.debug("Database connection established")
        yield conn
        conn.commit()
        logger.debug("Transaction committed")
    except Exception as e:
        if conn:
            conn.rollback()
            logger.error(f"Transaction rolled back due to error: {e}")
        raise
    finally:
        if conn:
            conn.close()
            logger.debug("Database connection closed")


@contextmanager
def get_db_cursor(database_url: str, dict_cursor=True):
    """
    Context manager for database cursor.
    Returns RealDictCursor by default for row-as-dict results.

    Usage:
        with get_db_cursor(url) as cur:
            cur.execute("SELECT * FROM events WHERE id = %s", (booking_id,))
            row = cur.fetchone()  # Returns dict-like object
    """
    with get_db_connection(database_url) as conn:
        cursor_factory = RealDictCursor if dict_cursor else None
        cur = conn.cursor(cursor_factory=cursor_factory)
        try:
            yield cur
        finally:
            cur.close()
