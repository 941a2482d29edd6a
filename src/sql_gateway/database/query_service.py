# src/sql_gateway/database/query_service.py
import json
import logging
from typing import Callable, Dict, Any, List, Optional, Tuple

from pydantic import ValidationError

from sql_gateway.config.sql_config import SqlApiConfig
from sql_gateway.core.exceptions.custom_exceptions import (
    DatabaseConnectionError,
    ParameterValidationError,
    QueryExecutionError,
    RequestValidationError
)
from sql_gateway.core.models import (
    ComplexityDetails,
    ComplexitySummary,
    ExecuteResponse,
    FieldInfo,
    SafetyEstimate,
    SqlQueryRequest,
    ValidateResponse,
    ValidationDetails,
    describe_validation_error
)
from sql_gateway.core.responses import ServiceResponse, create_error_response, utc_timestamp
from sql_gateway.database.error_handler import ErrorCategory
from sql_gateway.database.query_executor import QueryExecutor
from sql_gateway.security.audit import AuditLogger
from sql_gateway.security.complexity import ComplexityAssessment, assess_complexity
from sql_gateway.security.parameters import sanitize_parameters
from sql_gateway.security.query_validator import ValidationResult, validate_query
from sql_gateway.security.rate_limiter import ClientInfo, RateLimitDecision, RateLimiter
from sql_gateway.security.table_extractor import extract_table_names

logger = logging.getLogger(__name__)

# Executor error category -> (HTTP status, error code)
FAILURE_STATUS: Dict[str, Tuple[int, str]] = {
    ErrorCategory.SYNTAX.value: (400, "SYNTAX_ERROR"),
    ErrorCategory.PERMISSION.value: (403, "PERMISSION_DENIED"),
    ErrorCategory.TIMEOUT.value: (408, "QUERY_TIMEOUT"),
    ErrorCategory.CONNECTION.value: (503, "DATABASE_UNAVAILABLE"),
}
DEFAULT_FAILURE_STATUS = (500, "SQL_EXECUTION_ERROR")

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class _Rejected(Exception):
    """Carries a finished error response out of a gate."""

    def __init__(self, response: ServiceResponse):
        self.response = response
        super().__init__(response.body.get("message"))


class _Admitted:
    """A request that passed every gate before execution."""

    def __init__(self,
                 request: SqlQueryRequest,
                 parameters: List[Optional[str]],
                 validation: ValidationResult,
                 complexity: ComplexityAssessment,
                 warnings: List[str],
                 headers: Dict[str, str]):
        self.request = request
        self.parameters = parameters
        self.validation = validation
        self.complexity = complexity
        self.warnings = warnings
        self.headers = headers


class QueryService:
    """
    Request pipeline of the SQL API.

    A request passes the gates in a fixed order: size, rate limit, structure,
    parameters, security policy and complexity. Any gate may reject it with an
    error response; only a request that passed all of them reaches the
    executor. Execution failures are mapped to HTTP statuses here and nowhere
    else.
    """

    def __init__(self,
                 executor: Optional[QueryExecutor],
                 rate_limiter: RateLimiter,
                 config: SqlApiConfig,
                 audit_logger: Optional[AuditLogger] = None,
                 unavailable_reason: Optional[str] = None):
        """
        Initialize the query service.

        Args:
            executor (Optional[QueryExecutor]): Executor, None when the database is not configured
            rate_limiter (RateLimiter): Limiter shared by the SQL endpoints
            config (SqlApiConfig): SQL API settings
            audit_logger (Optional[AuditLogger]): Audit trail writer
            unavailable_reason (Optional[str]): Why the executor is missing
        """
        self._executor = executor
        self._rate_limiter = rate_limiter
        self._config = config
        self._audit = audit_logger or AuditLogger()
        self._unavailable_reason = unavailable_reason or "Database is not configured"

    @property
    def executor(self) -> Optional[QueryExecutor]:
        return self._executor

    @property
    def config(self) -> SqlApiConfig:
        return self._config

    @property
    def is_available(self) -> bool:
        return self._executor is not None

    # Gates

    def _check_size(self, size: int) -> None:
        max_size = self._config.max_request_bytes
        if size > max_size:
            raise _Rejected(ServiceResponse(413, create_error_response(
                "Request too large",
                [f"Request size {size} bytes exceeds maximum allowed size of {max_size} bytes"],
                413,
                "REQUEST_TOO_LARGE"
            )))

    def _check_rate_limit(self, client: ClientInfo) -> RateLimitDecision:
        decision = self._rate_limiter.hit(client.rate_limit_key)
        if not decision.allowed:
            raise _Rejected(ServiceResponse(429, create_error_response(
                "Too many SQL requests, please try again later.",
                [],
                429,
                "RATE_LIMIT_EXCEEDED",
                retryAfter=decision.retry_after
            ), decision.headers()))
        return decision

    @staticmethod
    def parse_request(body: bytes) -> SqlQueryRequest:
        """
        Decode and structurally validate a request body.

        Args:
            body (bytes): Raw JSON body

        Returns:
            SqlQueryRequest: Validated request

        Raises:
            RequestValidationError: If the body is not a valid request object
        """
        try:
            payload = json.loads(body or b"null")
        except (ValueError, UnicodeDecodeError):
            raise RequestValidationError("Invalid JSON body", ["Request body must be valid JSON"])

        if not isinstance(payload, dict):
            raise RequestValidationError("Invalid request body", ["Request body must be a JSON object"])

        try:
            return SqlQueryRequest.model_validate(payload)
        except ValidationError as e:
            message, details = describe_validation_error(e)
            raise RequestValidationError(message, details)

    def _check_request(self, body: bytes) -> Tuple[SqlQueryRequest, List[Optional[str]]]:
        try:
            request = self.parse_request(body)
        except RequestValidationError as e:
            raise _Rejected(ServiceResponse(400, create_error_response(
                e.get_user_message(), e.details, 400, "VALIDATION_ERROR"
            )))

        try:
            parameters = sanitize_parameters(request.params or [])
        except ParameterValidationError as e:
            raise _Rejected(ServiceResponse(400, create_error_response(
                "Parameter validation failed", [e.get_user_message()], 400, "VALIDATION_ERROR"
            )))

        return request, parameters

    def _check_security(self,
                        query: str,
                        client: ClientInfo) -> Tuple[ValidationResult, ComplexityAssessment, List[str]]:
        validation = validate_query(query)
        if not validation.is_valid:
            logger.warning(f"SQL security violation from {client.ip}: {', '.join(validation.errors)}")
            raise _Rejected(ServiceResponse(400, create_error_response(
                "SQL query validation failed", list(validation.errors), 400, "INVALID_SQL_QUERY"
            )))

        complexity = assess_complexity(query, self._config.complexity_warn_threshold)
        warnings = list(validation.warnings)

        if complexity.score > self._config.complexity_reject_threshold:
            logger.warning(f"Rejected complex SQL query from {client.ip}: score {complexity.score}")
            raise _Rejected(ServiceResponse(400, create_error_response(
                "Query too complex",
                ["Query complexity exceeds maximum allowed threshold", *complexity.issues],
                400,
                "QUERY_TOO_COMPLEX"
            )))

        if complexity.score > self._config.complexity_warn_threshold:
            logger.warning(f"Complex SQL query from {client.ip}: complexity score {complexity.score}")
            warnings.append(
                f"Query complexity score {complexity.score} exceeds recommended threshold "
                f"of {self._config.complexity_warn_threshold}"
            )

        if warnings:
            logger.warning(f"SQL query warnings from {client.ip}: {', '.join(warnings)}")

        return validation, complexity, warnings

    def _admit(self, body: bytes, client: ClientInfo, size: Optional[int]) -> _Admitted:
        self._check_size(len(body) if size is None else size)
        decision = self._check_rate_limit(client)
        headers = decision.headers()
        try:
            request, parameters = self._check_request(body)
            validation, complexity, warnings = self._check_security(request.query, client)
        except _Rejected as rejected:
            rejected.response.headers.update(headers)
            raise
        return _Admitted(request, parameters, validation, complexity, warnings, headers)

    # Endpoints

    def execute_request(self,
                        body: bytes,
                        client: ClientInfo,
                        size: Optional[int] = None) -> ServiceResponse:
        """
        Run a request through every gate and execute it.

        Args:
            body (bytes): Raw JSON request body
            client (ClientInfo): Caller identity
            size (Optional[int]): Size of an oversized body that was not kept

        Returns:
            ServiceResponse: Success body or error body with its status
        """
        try:
            admitted = self._admit(body, client, size)
        except _Rejected as rejected:
            return rejected.response

        request = admitted.request
        query = request.query

        self._audit.log_request(
            client, query, len(admitted.parameters), admitted.complexity.score, admitted.warnings
        )

        tables = extract_table_names(query)
        logger.info(f"SQL query accessing tables: {', '.join(tables) or 'none detected'}")

        timeout_ms = request.timeout or self._config.query_timeout_ms
        max_rows = request.limit or self._config.max_rows

        if self._executor is None:
            response = ServiceResponse(503, create_error_response(
                "SQL query execution failed",
                [self._unavailable_reason],
                503,
                "DATABASE_UNAVAILABLE",
                executionTime=None,
                query=query
            ), admitted.headers)
            self._audit.log_response(client, 503, error=response.body["message"])
            return response

        try:
            result = self._executor.execute_query(query, admitted.parameters, timeout_ms, max_rows)
        except QueryExecutionError as e:
            status_code, code = FAILURE_STATUS.get(e.category, DEFAULT_FAILURE_STATUS)
            logger.error(f"SQL execution error ({code}): {e.get_user_message()}")
            response = ServiceResponse(status_code, create_error_response(
                "SQL query execution failed",
                [e.get_user_message()],
                status_code,
                code,
                executionTime=e.execution_time_ms,
                query=query
            ), admitted.headers)
            self._audit.log_response(
                client, status_code, execution_time_ms=e.execution_time_ms, error=response.body["message"]
            )
            return response

        success = ExecuteResponse(
            data=result.rows,
            row_count=result.row_count,
            execution_time=result.execution_time_ms,
            query=query,
            tables=tables,
            truncated=result.truncated,
            fields=[FieldInfo(**field) for field in result.fields],
            warnings=admitted.warnings,
            complexity=ComplexitySummary(
                score=admitted.complexity.score, issues=list(admitted.complexity.issues)
            ),
            message=f"Results truncated to {max_rows} rows" if result.truncated else None
        )

        self._audit.log_response(
            client, 200, execution_time_ms=result.execution_time_ms, row_count=result.row_count
        )
        return ServiceResponse(200, success.to_body(), admitted.headers)

    def validate_request(self,
                         body: bytes,
                         client: ClientInfo,
                         size: Optional[int] = None) -> ServiceResponse:
        """
        Run the gates of ``execute_request`` and report the analysis without
        touching the database.

        Args:
            body (bytes): Raw JSON request body
            client (ClientInfo): Caller identity
            size (Optional[int]): Size of an oversized body that was not kept

        Returns:
            ServiceResponse: Analysis or error body with its status
        """
        try:
            admitted = self._admit(body, client, size)
        except _Rejected as rejected:
            return rejected.response

        validation = admitted.validation
        complexity = admitted.complexity

        if validation.errors:
            level = "low"
        else:
            level = "medium" if complexity.is_complex else "high"

        analysis = ValidateResponse(
            valid=validation.is_valid,
            query=admitted.request.query,
            tables=extract_table_names(admitted.request.query),
            validation=ValidationDetails(
                errors=list(validation.errors),
                warnings=admitted.warnings,
                normalized_query=validation.normalized_query
            ),
            complexity=ComplexityDetails(
                score=complexity.score,
                is_complex=complexity.is_complex,
                issues=list(complexity.issues)
            ),
            estimated_safety=SafetyEstimate(
                level=level,
                recommendations=[*admitted.warnings, *complexity.issues]
            )
        )
        return ServiceResponse(200, analysis.to_body(), admitted.headers)

    def rate_limited(self,
                     client: ClientInfo,
                     handler: Callable[[], ServiceResponse]) -> ServiceResponse:
        """
        Count a request against the SQL rate limit and run ``handler`` if it
        is admitted.

        Args:
            client (ClientInfo): Caller identity
            handler (Callable[[], ServiceResponse]): Endpoint body

        Returns:
            ServiceResponse: Handler response with RateLimit headers, or 429
        """
        try:
            decision = self._check_rate_limit(client)
        except _Rejected as rejected:
            return rejected.response

        response = handler()
        response.headers.update(decision.headers())
        return response

    def test_connection(self) -> ServiceResponse:
        """
        Check that the database answers a query.

        Returns:
            ServiceResponse: Server time and version, or 503
        """
        if self._executor is None:
            return ServiceResponse(503, create_error_response(
                "Database connection failed",
                [self._unavailable_reason],
                503,
                "DATABASE_CONNECTION_FAILED",
                poolStats=self.get_pool_stats()
            ))

        outcome = self._executor.test_connection()
        if not outcome["success"]:
            return ServiceResponse(503, create_error_response(
                "Database connection failed",
                [outcome["error"]],
                503,
                "DATABASE_CONNECTION_FAILED",
                poolStats=outcome["poolStats"]
            ))

        return ServiceResponse(200, {
            "success": True,
            "message": "Database connection successful",
            "timestamp": outcome["timestamp"],
            "version": outcome["version"],
            "poolStats": outcome["poolStats"]
        })

    def get_pool_stats(self) -> Dict[str, Any]:
        if self._executor is None:
            return {"status": "not_configured"}
        return self._executor.get_pool_stats()

    def get_stats(self) -> ServiceResponse:
        """
        Report pool occupancy and the effective configuration.

        Returns:
            ServiceResponse: Statistics body
        """
        max_connections = self._executor.pool.max_connections if self._executor is not None else None
        return ServiceResponse(200, {
            "success": True,
            "poolStats": self.get_pool_stats(),
            "configuration": {
                "maxConnections": max_connections,
                "queryTimeout": self._config.query_timeout_ms,
                "maxRows": self._config.max_rows,
                "rateLimitWindow": self._config.rate_limit_window_ms,
                "rateLimitMax": self._config.rate_limit_max
            },
            "timestamp": utc_timestamp()
        })

    def check_database(self) -> bool:
        """
        Check connectivity at startup.

        Returns:
            bool: True if the database answered
        """
        if self._executor is None:
            logger.warning(f"SQL API disabled: {self._unavailable_reason}")
            return False

        try:
            self._executor.pool.check_connection()
            logger.info("PostgreSQL connection verified")
            return True
        except DatabaseConnectionError as e:
            logger.error(f"PostgreSQL connection check failed ({e.error_code})")
            return False

    def close(self) -> None:
        """Release the connection pool."""
        if self._executor is not None:
            self._executor.pool.dispose()
