# src/sql_gateway/database/query_executor.py
from typing import Dict, Any, List, Optional, Sequence, Tuple
import logging
import re
import time

import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.sql.elements import TextClause

from sql_gateway.core.interfaces.query_interface import QueryExecutionInterface
from sql_gateway.core.exceptions.custom_exceptions import QueryExecutionError
from sql_gateway.database.connection_pool import ConnectionPool
from sql_gateway.database.error_handler import DatabaseErrorHandler

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_ROWS = 1000

_POSITIONAL_PLACEHOLDER = re.compile(r"\$(\d+)")


class QueryResult:
    """
    Container for query execution results with metadata.
    """

    def __init__(self,
                 rows: List[Dict[str, Any]],
                 query: str,
                 execution_time_ms: int,
                 fields: List[Dict[str, Any]],
                 truncated: bool = False):
        """
        Initialize a query result.

        Args:
            rows (List[Dict[str, Any]]): Result rows, already truncated
            query (str): The executed query
            execution_time_ms (int): Time spent in the driver call in milliseconds
            fields (List[Dict[str, Any]]): Column name and driver type id pairs
            truncated (bool): Whether rows were dropped to honour the row limit
        """
        self.rows = rows
        self.query = query
        self.execution_time_ms = execution_time_ms
        self.fields = fields
        self.truncated = truncated

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        """
        Get the first row of results or None if no results.

        Returns:
            Optional[Dict[str, Any]]: First row or None
        """
        return self.rows[0] if self.rows else None


def _rewrite_placeholders(query: str) -> str:
    """
    Turn ``$n`` outside quoted literals into ``:pn`` and escape every other
    colon so that ``sa.text`` does not read it as a bind parameter.
    """
    out = []
    quote = None
    i, length = 0, len(query)
    while i < length:
        char = query[i]
        if quote is not None:
            if char == quote:
                quote = None
            out.append("\\:" if char == ":" else char)
            i += 1
        elif char in ("'", '"'):
            quote = char
            out.append(char)
            i += 1
        elif query.startswith("::", i):
            # PostgreSQL cast
            out.append("::")
            i += 2
        elif char == ":":
            out.append("\\:")
            i += 1
        else:
            match = _POSITIONAL_PLACEHOLDER.match(query, i) if char == "$" else None
            if match is None:
                out.append(char)
                i += 1
                continue
            bind = f":p{match.group(1)}"
            i = match.end()
            # A bind name directly followed by a cast is not recognised
            out.append(f"({bind})" if query.startswith("::", i) else bind)
    return "".join(out)


def bind_positional_parameters(query: str,
                               parameters: Sequence[Optional[str]]) -> Tuple[TextClause, Dict[str, Any]]:
    """
    Rewrite PostgreSQL style ``$1, $2`` placeholders into SQLAlchemy bind
    parameters and pair them with the positional values.

    Args:
        query (str): SQL text with ``$n`` placeholders
        parameters (Sequence[Optional[str]]): Values in placeholder order

    Returns:
        Tuple[TextClause, Dict[str, Any]]: Statement and bind values
    """
    statement = sa.text(_rewrite_placeholders(query))
    values = {f"p{index}": value for index, value in enumerate(parameters, start=1)}
    return statement, values


class QueryExecutor(QueryExecutionInterface):
    """
    Executes read-only SQL queries on a pooled connection.
    Applies the statement timeout, bounds the returned rows and sanitizes
    every driver error before it leaves this class.
    """

    def __init__(self,
                 pool: ConnectionPool,
                 error_handler: Optional[DatabaseErrorHandler] = None,
                 default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
                 default_max_rows: int = DEFAULT_MAX_ROWS):
        """
        Initialize with a connection pool.

        Args:
            pool (ConnectionPool): Pool the connections are borrowed from
            error_handler (Optional[DatabaseErrorHandler]): Error handler for database operations
            default_timeout_ms (int): Statement timeout when the caller gives none
            default_max_rows (int): Row limit when the caller gives none
        """
        self._pool = pool
        self._error_handler = error_handler or DatabaseErrorHandler()
        self.default_timeout_ms = default_timeout_ms
        self.default_max_rows = default_max_rows

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    def _apply_statement_timeout(self, conn: Connection, timeout_ms: int) -> None:
        # Only PostgreSQL understands statement_timeout
        if conn.dialect.name == "postgresql":
            conn.execute(sa.text(f"SET statement_timeout = {int(timeout_ms)}"))

    @staticmethod
    def _describe_fields(result) -> List[Dict[str, Any]]:
        cursor = getattr(result, "cursor", None)
        description = getattr(cursor, "description", None)
        if description:
            return [{"name": column[0], "type": column[1]} for column in description]
        return [{"name": name, "type": None} for name in result.keys()]

    def execute_query(self,
                      query: str,
                      parameters: Optional[Sequence[Optional[str]]] = None,
                      timeout_ms: Optional[int] = None,
                      max_rows: Optional[int] = None) -> QueryResult:
        """
        Execute a parameterized query and return at most ``max_rows`` rows.

        The full result is fetched before truncation, so the limit bounds the
        response size but not the work done by the database.

        Args:
            query (str): SQL query with optional ``$n`` placeholders
            parameters (Optional[Sequence[Optional[str]]]): Positional bind values
            timeout_ms (Optional[int]): Statement timeout in milliseconds
            max_rows (Optional[int]): Maximum number of rows to return

        Returns:
            QueryResult: Rows, field metadata and timing

        Raises:
            QueryExecutionError: With a sanitized message if anything fails
        """
        timeout_ms = timeout_ms or self.default_timeout_ms
        max_rows = max_rows or self.default_max_rows
        statement, bind_values = bind_positional_parameters(query, parameters or [])

        start_time = None
        try:
            with self._pool.connection() as conn:
                self._apply_statement_timeout(conn, timeout_ms)

                start_time = time.perf_counter()
                result = conn.execute(statement, bind_values)

                if result.returns_rows:
                    fields = self._describe_fields(result)
                    columns = list(result.keys())
                    rows = [dict(zip(columns, row)) for row in result.fetchall()]
                else:
                    fields, rows = [], []

                execution_time_ms = int((time.perf_counter() - start_time) * 1000)
        except Exception as e:
            elapsed = int((time.perf_counter() - start_time) * 1000) if start_time is not None else 0
            raise self._error_handler.handle_error(e, query, elapsed) from e

        truncated = len(rows) > max_rows
        if truncated:
            logger.warning(f"Query returned {len(rows)} rows, truncating to {max_rows}")
            rows = rows[:max_rows]

        logger.info(f"SQL query executed in {execution_time_ms}ms, returned {len(rows)} rows")

        return QueryResult(
            rows=rows,
            query=query,
            execution_time_ms=execution_time_ms,
            fields=fields,
            truncated=truncated
        )

    def test_connection(self) -> Dict[str, Any]:
        """
        Run a check query reporting the server time and version.

        Returns:
            Dict[str, Any]: Check outcome together with pool statistics
        """
        if self._pool.dialect_name == "postgresql":
            check_query = "SELECT NOW() AS server_time, version() AS version"
        else:
            check_query = "SELECT CURRENT_TIMESTAMP AS server_time, sqlite_version() AS version"

        try:
            row = self.execute_query(check_query, max_rows=1).first() or {}
            return {
                "success": True,
                "timestamp": row.get("server_time"),
                "version": row.get("version"),
                "poolStats": self.get_pool_stats()
            }
        except QueryExecutionError as e:
            return {
                "success": False,
                "error": e.error_message,
                "poolStats": self.get_pool_stats()
            }

    def get_pool_stats(self) -> Dict[str, Any]:
        """Get occupancy statistics of the connection pool."""
        return self._pool.get_stats()
