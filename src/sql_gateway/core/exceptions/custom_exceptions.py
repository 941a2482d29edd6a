# src/sql_gateway/core/exceptions/custom_exceptions.py
from typing import Dict, Any, List, Optional


class SqlGatewayError(Exception):
    """Base exception for the SQL gateway."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def get_user_message(self) -> str:
        """Get a message that is safe to return to clients."""
        return self.message


class DatabaseConnectionError(SqlGatewayError):
    """Raised when the database is not configured or cannot be reached."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


class QueryExecutionError(SqlGatewayError):
    """
    Raised by the query executor when the database rejects or aborts a query.

    ``error_message`` is already sanitized and safe to show to clients;
    ``category`` is one of the values of ``ErrorCategory``.
    """

    def __init__(self,
                 query: str,
                 error_message: str,
                 category: str = "unknown",
                 execution_time_ms: Optional[int] = None):
        self.query = query
        self.error_message = error_message
        self.category = category
        self.execution_time_ms = execution_time_ms
        super().__init__(f"Error executing query. Details: {error_message}")

    def get_user_message(self) -> str:
        """Get the sanitized database message."""
        return self.error_message


class ParameterValidationError(SqlGatewayError):
    """Raised when a bind parameter is rejected by the parameter sanitizer."""

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        super().__init__(message)


class RateLimitExceededError(SqlGatewayError):
    """Raised by the general API rate limit dependency."""

    def __init__(self, retry_after: int, limit: int, headers: Optional[Dict[str, Any]] = None):
        self.retry_after = retry_after
        self.limit = limit
        self.headers = headers or {}
        super().__init__("Too many requests, please try again later.")


class RequestValidationError(SqlGatewayError):
    """Raised when a request body is malformed or fails a field check."""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        self.details = details or []
        super().__init__(message)
