# src/sql_gateway/core/models.py
from typing import Dict, Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError
from pydantic.alias_generators import to_camel

from sql_gateway.config.sql_config import MIN_TIMEOUT_MS, MAX_TIMEOUT_MS, MIN_ROWS, MAX_ROWS


class SqlQueryRequest(BaseModel):
    """Body of the execute and validate endpoints."""
    model_config = ConfigDict(extra="ignore")

    query: StrictStr = Field(..., min_length=1, description="SQL SELECT statement")
    params: Optional[List[Any]] = Field(None, description="Positional parameters for $1, $2, ...")
    timeout: Optional[StrictInt] = Field(
        None, ge=MIN_TIMEOUT_MS, le=MAX_TIMEOUT_MS, description="Statement timeout in milliseconds"
    )
    limit: Optional[StrictInt] = Field(None, ge=MIN_ROWS, le=MAX_ROWS, description="Maximum rows to return")


# Field -> (message, detail) reported when pydantic rejects that field
FIELD_ERRORS: Dict[str, Tuple[str, str]] = {
    "query": ("Invalid query format", "Query must be a string"),
    "params": ("Invalid parameters format", "Parameters must be an array"),
    "timeout": ("Invalid timeout value",
                f"Timeout must be a number between {MIN_TIMEOUT_MS} and {MAX_TIMEOUT_MS} milliseconds"),
    "limit": ("Invalid limit value", f"Limit must be a number between {MIN_ROWS} and {MAX_ROWS}"),
}

MISSING_QUERY = ("Missing required field: query", "Query parameter is required")


def describe_validation_error(error: ValidationError) -> Tuple[str, List[str]]:
    """
    Turn the first field failure of a ``SqlQueryRequest`` into a client message.

    Args:
        error (ValidationError): Error raised by ``SqlQueryRequest.model_validate``

    Returns:
        Tuple[str, List[str]]: Message and details
    """
    for item in error.errors():
        field = item["loc"][0] if item["loc"] else None
        if field == "query" and item["type"] in ("missing", "string_too_short"):
            return MISSING_QUERY[0], [MISSING_QUERY[1]]
        if field in FIELD_ERRORS:
            message, detail = FIELD_ERRORS[field]
            return message, [detail]

    return "Invalid request body", [item["msg"] for item in error.errors()]


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class FieldInfo(BaseModel):
    """Result column name and driver type id."""
    name: str
    type: Any = None


class ComplexitySummary(CamelModel):
    score: int
    issues: List[str] = Field(default_factory=list)


class ComplexityDetails(CamelModel):
    score: int
    is_complex: bool
    issues: List[str] = Field(default_factory=list)


class ExecuteResponse(CamelModel):
    """Success body of the execute endpoint."""
    success: bool = True
    data: List[Dict[str, Any]]
    row_count: int
    execution_time: int
    query: str
    tables: List[str] = Field(default_factory=list)
    truncated: bool = False
    fields: List[FieldInfo] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    complexity: Optional[ComplexitySummary] = None
    message: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if body.get("message") is None:
            body.pop("message", None)
        return body


class ValidationDetails(CamelModel):
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    normalized_query: str = ""


class SafetyEstimate(CamelModel):
    level: str
    recommendations: List[str] = Field(default_factory=list)


class ValidateResponse(CamelModel):
    """Success body of the validate endpoint."""
    success: bool = True
    valid: bool
    query: str
    tables: List[str] = Field(default_factory=list)
    validation: ValidationDetails
    complexity: ComplexityDetails
    estimated_safety: SafetyEstimate
