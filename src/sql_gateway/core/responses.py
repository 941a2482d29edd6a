# src/sql_gateway/core/responses.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_error_response(message: str,
                          details: Optional[List[str]] = None,
                          status_code: int = 400,
                          code: Optional[str] = None,
                          **extras: Any) -> Dict[str, Any]:
    """
    Build the JSON body shared by every error response.

    Args:
        message (str): Short description of the failure
        details (Optional[List[str]]): Individual reasons
        status_code (int): HTTP status code, repeated in the body
        code (Optional[str]): Machine readable error code
        **extras: Additional top-level fields such as ``retryAfter``

    Returns:
        Dict[str, Any]: Error body
    """
    body: Dict[str, Any] = {
        "error": True,
        "message": message,
        "details": list(details or []),
        "statusCode": status_code,
        "timestamp": utc_timestamp()
    }
    if code:
        body["code"] = code
    body.update(extras)
    return body


@dataclass
class ServiceResponse:
    """Status, JSON body and extra headers produced by the query service."""

    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400
