"""HR Suite Database Module.

Provides the PostgreSQL connection pool and cursor helpers used by every
repository. The pool is created lazily so that importing repositories
(e.g. in tests or with the in-memory store) never opens a connection.
"""
import logging
import threading
from contextlib import contextmanager

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from hrsuite.config import config

logger = logging.getLogger('hrsuite.database')

_connection_pool = None
_pool_lock = threading.Lock()


def _get_pool():
    """Get or create the connection pool (lazy initialization, thread-safe)."""
    global _connection_pool
    if _connection_pool is None:
        with _pool_lock:
            if _connection_pool is None:
                if not config.DATABASE_URL:
                    raise ValueError(
                        'DATABASE_URL environment variable is required. '
                        'Set it to your PostgreSQL connection string.')
                _connection_pool = pool.ThreadedConnectionPool(
                    minconn=config.DB_POOL_MIN_CONN,
                    maxconn=config.DB_POOL_MAX_CONN,
                    dsn=config.DATABASE_URL,
                    keepalives=1,
                    keepalives_idle=30,
                    keepalives_interval=10,
                    keepalives_count=5,
                    connect_timeout=5,
                )
                logger.info(f'Connection pool created: min={config.DB_POOL_MIN_CONN}, '
                            f'max={config.DB_POOL_MAX_CONN}')
    return _connection_pool


def get_db():
    """Get PostgreSQL database connection from pool.

    Validates connection health before returning. Stale connections are
    discarded and a fresh one is obtained, up to 3 attempts.
    """
    max_retries = 3
    last_error = None

    for _ in range(max_retries):
        conn = _get_pool().getconn()
        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            conn.rollback()
            # Each query sees the latest committed data
            conn.autocommit = True
            return conn
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            last_error = e
            _get_pool().putconn(conn, close=True)

    raise psycopg2.OperationalError(
        f'Failed to get valid connection after {max_retries} attempts: {last_error}')


def release_db(conn):
    """Return connection to pool, resetting autocommit for the next user."""
    if conn and _connection_pool:
        try:
            conn.autocommit = False
        except psycopg2.InterfaceError:
            pass  # closed connection
        _connection_pool.putconn(conn)


@contextmanager
def transaction():
    """Context manager for atomic database transactions.

    Usage:
        with transaction() as conn:
            cursor = get_cursor(conn)
            cursor.execute('INSERT INTO ...')
            cursor.execute('UPDATE ...')
        # Auto-commits on success, auto-rollbacks on exception
    """
    conn = get_db()
    try:
        conn.autocommit = False
        yield conn
        conn.commit()
        logger.debug('Transaction committed successfully')
    except Exception as e:
        conn.rollback()
        logger.warning(f'Transaction rolled back: {e}')
        raise
    finally:
        release_db(conn)


def ping_db():
    """Ping the database. Returns True if successful, False otherwise."""
    try:
        conn = get_db()
        try:
            with conn.cursor() as cur:
                cur.execute('SELECT 1')
            return True
        finally:
            release_db(conn)
    except (psycopg2.Error, ValueError) as e:
        logger.warning(f'Database ping failed: {e}')
        return False


def get_cursor(conn):
    """Get cursor with dict row factory."""
    return conn.cursor(cursor_factory=RealDictCursor)


def dict_from_row(row):
    """Convert a RealDictRow to a plain dict. None stays None."""
    if row is None:
        return None
    return dict(row)


def init_db():
    """Create the claims schema. Safe to call repeatedly."""
    from hrsuite.migrations.init_schema import create_schema

    with transaction() as conn:
        create_schema(conn, get_cursor(conn))
    logger.info('Claims schema initialized')
