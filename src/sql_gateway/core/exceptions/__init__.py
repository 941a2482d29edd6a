# src/sql_gateway/core/exceptions/__init__.py
from .custom_exceptions import (
    SqlGatewayError,
    DatabaseConnectionError,
    QueryExecutionError,
    ParameterValidationError,
    RateLimitExceededError,
    RequestValidationError
)

__all__ = [
    'SqlGatewayError',
    'DatabaseConnectionError',
    'QueryExecutionError',
    'ParameterValidationError',
    'RateLimitExceededError',
    'RequestValidationError'
]
