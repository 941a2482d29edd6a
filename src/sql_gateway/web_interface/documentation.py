# src/sql_gateway/web_interface/documentation.py
from typing import Dict, Any

from sql_gateway.config.sql_config import SqlApiConfig, MIN_TIMEOUT_MS, MAX_TIMEOUT_MS, MIN_ROWS, MAX_ROWS
from sql_gateway.security.parameters import MAX_PARAMETER_LENGTH
from sql_gateway.security.query_validator import MAX_QUERY_LENGTH


def build_documentation(base_url: str, config: SqlApiConfig) -> Dict[str, Any]:
    """
    Build the self-description served by ``GET /api/sql/docs``.

    Args:
        base_url (str): Externally visible URL of the SQL API
        config (SqlApiConfig): Effective SQL API settings

    Returns:
        Dict[str, Any]: Documentation document
    """
    window_minutes = config.rate_limit_window_ms // 60000

    return {
        "title": "PostgreSQL SQL API Documentation",
        "version": "1.0.0",
        "description": "Secure read-only SQL API for PostgreSQL database queries",
        "baseUrl": base_url,
        "endpoints": {
            "POST /execute": {
                "description": "Execute a SELECT SQL query",
                "parameters": {
                    "query": {
                        "type": "string",
                        "required": True,
                        "description": "SQL SELECT query to execute"
                    },
                    "params": {
                        "type": "array",
                        "required": False,
                        "description": "Query parameters for parameterized queries"
                    },
                    "timeout": {
                        "type": "number",
                        "required": False,
                        "description": f"Query timeout in milliseconds ({MIN_TIMEOUT_MS}-{MAX_TIMEOUT_MS})",
                        "default": config.query_timeout_ms
                    },
                    "limit": {
                        "type": "number",
                        "required": False,
                        "description": f"Maximum number of rows to return ({MIN_ROWS}-{MAX_ROWS})",
                        "default": config.max_rows
                    }
                },
                "example": {
                    "query": "SELECT * FROM users WHERE active = $1 LIMIT 10",
                    "params": [True],
                    "timeout": 15000,
                    "limit": 10
                }
            },
            "GET /test": {
                "description": "Test database connection",
                "parameters": {},
                "example": "GET /api/sql/test"
            },
            "GET /stats": {
                "description": "Get database pool statistics and configuration",
                "parameters": {},
                "example": "GET /api/sql/stats"
            },
            "POST /validate": {
                "description": "Validate SQL query without execution",
                "parameters": {
                    "query": {
                        "type": "string",
                        "required": True,
                        "description": "SQL query to validate"
                    }
                },
                "example": {
                    "query": "SELECT name, email FROM users WHERE created_at > NOW() - INTERVAL '1 day'"
                }
            }
        },
        "security": {
            "Query Restrictions": [
                "Only SELECT statements are allowed",
                "No access to system tables or schemas",
                "No UNION, subqueries with system access, or dangerous functions",
                "Query complexity limits to prevent resource exhaustion"
            ],
            "Rate Limiting": {
                "window": f"{window_minutes} minutes",
                "maxRequests": config.rate_limit_max,
                "description": "Rate limiting is applied per IP address and User-Agent"
            },
            "Request Limits": {
                "maxQueryLength": f"{MAX_QUERY_LENGTH:,} characters",
                "maxRequestSize": f"{config.max_request_bytes // 1024}KB",
                "maxParameterLength": f"{MAX_PARAMETER_LENGTH:,} characters per parameter"
            },
            "Response Limits": {
                "maxRows": config.max_rows,
                "maxTimeout": f"{MAX_TIMEOUT_MS // 60000} minutes",
                "description": "Results are automatically truncated if they exceed limits"
            }
        },
        "errorCodes": {
            "VALIDATION_ERROR": "Request body failed structural validation",
            "INVALID_SQL_QUERY": "Query failed security validation",
            "QUERY_TOO_COMPLEX": "Query complexity exceeds allowed threshold",
            "SYNTAX_ERROR": "SQL syntax error in query",
            "QUERY_TIMEOUT": "Query execution timeout",
            "PERMISSION_DENIED": "Insufficient database permissions",
            "RATE_LIMIT_EXCEEDED": "Too many requests in the current window",
            "DATABASE_UNAVAILABLE": "Database connection unavailable",
            "REQUEST_TOO_LARGE": "Request size exceeds maximum allowed"
        },
        "examples": {
            "Simple Query": {
                "request": {"query": "SELECT id, name, email FROM users LIMIT 5"},
                "response": {
                    "success": True,
                    "data": [
                        {"id": 1, "name": "John Doe", "email": "john@example.com"},
                        {"id": 2, "name": "Jane Smith", "email": "jane@example.com"}
                    ],
                    "rowCount": 2,
                    "executionTime": 45,
                    "truncated": False
                }
            },
            "Parameterized Query": {
                "request": {
                    "query": "SELECT * FROM products WHERE category = $1 AND price > $2",
                    "params": ["electronics", 100]
                },
                "response": {
                    "success": True,
                    "data": [],
                    "rowCount": 0,
                    "executionTime": 23,
                    "truncated": False
                }
            },
            "Error Response": {
                "response": {
                    "error": True,
                    "message": "SQL query validation failed",
                    "details": ["Only SELECT statements are allowed"],
                    "statusCode": 400,
                    "code": "INVALID_SQL_QUERY"
                }
            }
        }
    }
