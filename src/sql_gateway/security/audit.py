# src/sql_gateway/security/audit.py
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from sql_gateway.security.rate_limiter import ClientInfo

logger = logging.getLogger(__name__)

AUDIT_LOGGER_NAME = "sql_gateway.audit"
MAX_LOGGED_QUERY_LENGTH = 500


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLogger:
    """
    Writes the SQL audit trail: one entry before execution and one with the
    outcome. Logging failures are reported and never reach the request.
    """

    def __init__(self, audit_logger: Optional[logging.Logger] = None):
        self._logger = audit_logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_request(self,
                    client: ClientInfo,
                    query: str,
                    param_count: int,
                    complexity_score: int,
                    warnings: Sequence[str]) -> None:
        """Record a query that passed every gate and is about to run."""
        self._emit("SQL Audit Log", {
            "timestamp": _timestamp(),
            "ip": client.ip,
            "userAgent": client.user_agent,
            "query": query[:MAX_LOGGED_QUERY_LENGTH],
            "paramCount": param_count,
            "complexity": complexity_score,
            "warnings": list(warnings),
        })

    def log_response(self,
                     client: ClientInfo,
                     status_code: int,
                     execution_time_ms: Optional[int] = None,
                     row_count: Optional[int] = None,
                     error: Optional[str] = None) -> None:
        """Record the outcome of an executed query."""
        self._emit("SQL Response Log", {
            "timestamp": _timestamp(),
            "ip": client.ip,
            "success": error is None,
            "statusCode": status_code,
            "executionTime": execution_time_ms,
            "rowCount": row_count,
            "error": error,
        })

    def _emit(self, label: str, entry: Dict[str, Any]) -> None:
        try:
            self._logger.info(f"{label}: {json.dumps(entry, default=str)}")
        except Exception:
            logger.warning(f"Failed to write {label} entry", exc_info=True)
