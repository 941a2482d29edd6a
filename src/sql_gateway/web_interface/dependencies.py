# src/sql_gateway/web_interface/dependencies.py
from typing import Tuple

from fastapi import Request
import logging

from sql_gateway.config.sql_config import SqlApiConfig
from sql_gateway.core.exceptions.custom_exceptions import DatabaseConnectionError, RateLimitExceededError
from sql_gateway.database.config import DatabaseConfig
from sql_gateway.database.connection_pool import ConnectionPool
from sql_gateway.database.query_executor import QueryExecutor
from sql_gateway.database.query_service import QueryService
from sql_gateway.security.rate_limiter import ClientInfo, RateLimiter

# Get logger
logger = logging.getLogger(__name__)


def build_query_service(config: SqlApiConfig) -> QueryService:
    """
    Build the process-wide query service from environment variables.

    Missing or invalid PostgreSQL settings leave the service without an
    executor; the SQL endpoints then answer 503.
    """
    rate_limiter = RateLimiter(
        window_ms=config.rate_limit_window_ms,
        max_requests=config.rate_limit_max
    )

    db_config = DatabaseConfig()
    try:
        pool = ConnectionPool(
            db_config.get_connection_url_from_env(),
            connect_args=db_config.get_connect_args(),
            **db_config.get_pool_args()
        )
    except DatabaseConnectionError as e:
        logger.warning(f"PostgreSQL is not available: {e.message}")
        return QueryService(None, rate_limiter, config, unavailable_reason=e.message)

    executor = QueryExecutor(
        pool,
        default_timeout_ms=config.query_timeout_ms,
        default_max_rows=config.max_rows
    )
    logger.info(f"PostgreSQL connection pool created with {pool.max_connections} connections")
    return QueryService(executor, rate_limiter, config)


def get_query_service(request: Request) -> QueryService:
    """
    Get the query service created at application startup.
    """
    return request.app.state.query_service


def get_client_info(request: Request) -> ClientInfo:
    """
    Get the caller identity used for rate limiting and audit logging.
    """
    ip = request.client.host if request.client else "unknown"
    return ClientInfo(ip=ip, user_agent=request.headers.get("user-agent"))


def enforce_api_rate_limit(request: Request) -> None:
    """
    Apply the general API rate limit, keyed by client IP.
    """
    limiter: RateLimiter = request.app.state.api_rate_limiter
    client = get_client_info(request)
    decision = limiter.hit(client.ip)
    if not decision.allowed:
        raise RateLimitExceededError(
            retry_after=decision.retry_after,
            limit=decision.limit,
            headers=decision.headers()
        )


async def read_request_body(request: Request, max_bytes: int) -> Tuple[bytes, int]:
    """
    Read the request body, giving up as soon as it is larger than ``max_bytes``.

    A declared ``Content-Length`` above the limit is rejected without reading
    anything.

    Returns:
        Tuple[bytes, int]: The body, empty when too large, and its size in bytes
    """
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        logger.warning(f"Rejected request body of {declared} declared bytes")
        return b"", int(declared)

    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            logger.warning(f"Stopped reading request body after {size} bytes")
            return b"", size
        chunks.append(chunk)
    return b"".join(chunks), size
