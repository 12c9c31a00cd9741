# autocompleted/services/db.py
# Responsibility: Provides the process-wide connection pool and per-round-trip connection handling.

from contextlib import contextmanager
from typing import Iterator

import psycopg2
from loguru import logger
from psycopg2.pool import ThreadedConnectionPool

from autocompleted.config.settings import settings


def create_pool(
    dsn: str = settings.DB.URL,
    min_size: int = settings.DB.POOL_MIN_SIZE,
    max_size: int = settings.DB.POOL_MAX_SIZE,
) -> "ConnectionPool":
    """
    Creates the shared pool. Called once at application startup.

    Returns:
        ConnectionPool: Thread-safe pool handing out psycopg2 connections.
    """
    logger.info("Opening connection pool (min={}, max={})", min_size, max_size)
    return ConnectionPool(ThreadedConnectionPool(min_size, max_size, dsn))


class ConnectionPool:
    """
    Owns every database connection. Requests borrow one connection for the
    duration of a single store round trip.

    Usage:
        with pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(...)
    """

    def __init__(self, pool: ThreadedConnectionPool):
        self._pool = pool

    @contextmanager
    def connection(self) -> Iterator["psycopg2.extensions.connection"]:
        """
        Borrows a connection. Commits and returns it on success; on failure the
        transaction is rolled back and the connection is discarded rather than
        handed to the next request in an unknown state.

        Raises:
            psycopg2.pool.PoolError: The pool is exhausted or closed.
            psycopg2.OperationalError: A new connection could not be opened.
        """
        conn = self._pool.getconn()
        try:
            yield conn
        except Exception:
            self._discard(conn)
            raise
        else:
            try:
                conn.commit()
            except psycopg2.Error as e:
                logger.warning("[DB] Commit failed, discarding connection: {}", e)
                self._pool.putconn(conn, close=True)
                raise
            self._pool.putconn(conn)

    def _discard(self, conn) -> None:
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.warning("[DB] Rollback failed: {}", e)
        finally:
            self._pool.putconn(conn, close=True)

    def close(self) -> None:
        """Closes every connection. Called on application shutdown."""
        self._pool.closeall()
        logger.info("Connection pool closed")
