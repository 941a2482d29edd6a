# src/sql_gateway/database/__init__.py
from sql_gateway.database.config import DatabaseConfig
from sql_gateway.database.connection_pool import ConnectionPool
from sql_gateway.database.error_handler import DatabaseErrorHandler, ErrorCategory
from sql_gateway.database.query_executor import QueryExecutor, QueryResult
from sql_gateway.database.query_service import QueryService

__all__ = [
    'DatabaseConfig',
    'ConnectionPool',
    'DatabaseErrorHandler',
    'ErrorCategory',
    'QueryExecutor',
    'QueryResult',
    'QueryService'
]
