# src/sql_gateway/database/error_handler.py
import logging
import re
from enum import Enum
from typing import Optional, Pattern, Tuple

from sqlalchemy.exc import (
    DisconnectionError,
    SQLAlchemyError,
    StatementError,
    TimeoutError as PoolTimeoutError
)

from sql_gateway.core.exceptions.custom_exceptions import QueryExecutionError

logger = logging.getLogger(__name__)

REDACTION_MARKER = "[REDACTED]"


class ErrorCategory(str, Enum):
    """Classification of database failures."""

    SYNTAX = "syntax"
    MISSING_RELATION = "missing_relation"
    PERMISSION = "permission"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    UNKNOWN = "unknown"


class DatabaseErrorHandler:
    """
    Turns driver exceptions into ``QueryExecutionError`` with a message that
    is safe to show to clients.

    Two passes, usable on their own:
      1. ``redact_message`` replaces credentials and connection details.
      2. ``categorize_message`` recognizes common failures and swaps the text
         for a fixed phrase. Unrecognized messages keep their redacted text.
    """

    SENSITIVE_PATTERNS: Tuple[Pattern, ...] = (
        re.compile(r"password", re.IGNORECASE),
        re.compile(r"connection string", re.IGNORECASE),
        re.compile(r"host.*port", re.IGNORECASE),
        re.compile(r"database.*user", re.IGNORECASE),
    )

    SAFE_MESSAGES = {
        ErrorCategory.SYNTAX: "SQL syntax error in query",
        ErrorCategory.MISSING_RELATION: "Table or column does not exist",
        ErrorCategory.PERMISSION: "Insufficient database permissions",
        ErrorCategory.TIMEOUT: "Query execution timeout",
        ErrorCategory.CONNECTION: "Database connection error",
    }

    _MISSING_RELATION = re.compile(
        r"(relation|column|table)\b.*\bdoes not exist|no such (table|column)",
        re.IGNORECASE
    )

    def __init__(self, log_level: int = logging.ERROR):
        """
        Initialize the database error handler.

        Args:
            log_level: Logging level for database errors
        """
        self.log_level = log_level

    @classmethod
    def redact_message(cls, message: str) -> str:
        """
        Replace credentials and connection details with a redaction marker.

        Args:
            message: Raw driver message

        Returns:
            str: Redacted message
        """
        redacted = message
        for pattern in cls.SENSITIVE_PATTERNS:
            redacted = pattern.sub(REDACTION_MARKER, redacted)
        return redacted

    @classmethod
    def categorize_message(cls, message: str) -> ErrorCategory:
        """
        Classify a (redacted) driver message.

        Args:
            message: Driver message

        Returns:
            ErrorCategory: Recognized category or ``UNKNOWN``
        """
        lowered = message.lower()

        if "syntax error" in lowered:
            return ErrorCategory.SYNTAX
        if cls._MISSING_RELATION.search(message):
            return ErrorCategory.MISSING_RELATION
        if "permission denied" in lowered:
            return ErrorCategory.PERMISSION
        if "timeout" in lowered or "timed out" in lowered:
            return ErrorCategory.TIMEOUT
        if "connection" in lowered or "could not connect" in lowered:
            return ErrorCategory.CONNECTION
        return ErrorCategory.UNKNOWN

    @classmethod
    def sanitize_message(cls, message: str) -> Tuple[ErrorCategory, str]:
        """
        Run both passes over a driver message.

        Returns:
            Tuple[ErrorCategory, str]: Category and client-safe message
        """
        redacted = cls.redact_message(message)
        category = cls.categorize_message(redacted)
        return category, cls.SAFE_MESSAGES.get(category, redacted)

    @staticmethod
    def extract_message(error: Exception) -> str:
        """
        Get the underlying error message without SQLAlchemy's statement,
        parameter and documentation link decorations.
        """
        if isinstance(error, StatementError) and error.orig is not None:
            error = error.orig
        if isinstance(error, SQLAlchemyError) and error.args:
            return str(error.args[0]).strip() or error.__class__.__name__
        return str(error).strip() or error.__class__.__name__

    def handle_error(
            self,
            error: Exception,
            query: str,
            execution_time_ms: Optional[int] = None
    ) -> QueryExecutionError:
        """
        Handle a database error.

        Args:
            error: The original exception
            query: The query that failed
            execution_time_ms: Time spent before the failure

        Returns:
            QueryExecutionError: Exception carrying the sanitized message
        """
        raw_message = self.extract_message(error)

        if isinstance(error, (PoolTimeoutError, DisconnectionError)):
            # Pool exhaustion and dropped connections are availability problems
            category = ErrorCategory.CONNECTION
            safe_message = self.SAFE_MESSAGES[category]
        else:
            category, safe_message = self.sanitize_message(raw_message)

        # Only the redacted form is written to the logs
        logger.log(
            self.log_level,
            f"Database error ({category.value}) after {execution_time_ms}ms: "
            f"{self.redact_message(raw_message)}"
        )

        return QueryExecutionError(
            query=query,
            error_message=safe_message,
            category=category.value,
            execution_time_ms=execution_time_ms
        )
