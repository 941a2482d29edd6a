# src/sql_gateway/database/connection_pool.py
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Optional, Union
import logging
import threading

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine, URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool

from sql_gateway.core.exceptions.custom_exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class ConnectionPool:
    """
    Bounded pool of database connections shared by every SQL request.

    Wraps a SQLAlchemy engine backed by a ``QueuePool`` without overflow, so
    ``max_connections`` caps the number of queries running at once. Callers
    borrow a connection through ``connection()``, which gives it back on every
    exit path.
    """

    def __init__(
            self,
            url: Union[str, URL],
            max_connections: int = 10,
            idle_timeout_ms: int = 30000,
            acquire_timeout_ms: int = 10000,
            connect_args: Optional[Dict[str, Any]] = None,
            **engine_kwargs
    ):
        """
        Initialize a connection pool. No connection is opened until first use.

        Args:
            url (Union[str, URL]): SQLAlchemy connection URL
            max_connections (int): Maximum number of open connections
            idle_timeout_ms (int): Maximum connection age. A connection opened longer
                ago than this is replaced at its next checkout, however long it
                sat unused; ``pool_pre_ping`` drops connections the server closed
            acquire_timeout_ms (int): Time to wait for a free connection before failing
            connect_args (Optional[Dict[str, Any]]): Driver connect arguments
            **engine_kwargs: Additional engine creation parameters
        """
        self.max_connections = max_connections
        self.idle_timeout_ms = idle_timeout_ms
        self.acquire_timeout_ms = acquire_timeout_ms
        self._lock = threading.RLock()

        connect_args = dict(connect_args or {})
        if str(url).startswith("sqlite"):
            # Requests run on worker threads
            connect_args.setdefault("check_same_thread", False)

        engine_args = {
            "poolclass": QueuePool,
            "pool_size": max_connections,
            "max_overflow": 0,
            "pool_timeout": acquire_timeout_ms / 1000.0,
            "pool_recycle": max(1, idle_timeout_ms // 1000),
            "pool_pre_ping": True,
            "connect_args": connect_args,
            **engine_kwargs
        }

        try:
            self._engine: Optional[Engine] = sa.create_engine(url, **engine_args)
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseConnectionError(
                f"Failed to create database engine: {str(e)}",
                error_code="DB_ENGINE_ERROR"
            ) from e

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DatabaseConnectionError("Connection pool has been closed", error_code="DB_POOL_CLOSED")
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """
        Borrow a connection for the duration of the ``with`` block.

        The transaction is rolled back and the connection returned to the pool
        when the block exits, whether it succeeded or raised.
        """
        with self.engine.connect() as conn:
            yield conn

    def check_connection(self) -> bool:
        """
        Open one connection and run ``SELECT 1``.

        Returns:
            bool: True if the database answered

        Raises:
            DatabaseConnectionError: If the database is unreachable
        """
        try:
            with self.connection() as conn:
                conn.execute(sa.text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Database health check failed: {str(e)}",
                error_code="DB_CONNECTION_ERROR"
            ) from e

    def available_connections(self) -> int:
        """Number of connections that can be borrowed right now without waiting."""
        return self.max_connections - self.engine.pool.checkedout()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the connection pool.

        Returns:
            Dict[str, Any]: Pool statistics
        """
        with self._lock:
            if self._engine is None:
                return {"status": "closed", "maxConnections": self.max_connections}

            pool = self._engine.pool
            checked_out = pool.checkedout()
            idle = pool.checkedin()
            return {
                "status": "active",
                "totalCount": checked_out + idle,
                "idleCount": idle,
                "activeCount": checked_out,
                "availableCount": self.max_connections - checked_out,
                "maxConnections": self.max_connections
            }

    def dispose(self) -> None:
        """Close every connection and the engine."""
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Database connection pool closed")
