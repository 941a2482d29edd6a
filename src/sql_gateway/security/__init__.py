# src/sql_gateway/security/__init__.py
from sql_gateway.security.query_validator import ValidationResult, validate_query
from sql_gateway.security.complexity import ComplexityAssessment, assess_complexity
from sql_gateway.security.parameters import sanitize_parameters
from sql_gateway.security.table_extractor import extract_table_names
from sql_gateway.security.rate_limiter import ClientInfo, RateLimitDecision, RateLimiter
from sql_gateway.security.audit import AuditLogger

__all__ = [
    'ValidationResult',
    'validate_query',
    'ComplexityAssessment',
    'assess_complexity',
    'sanitize_parameters',
    'extract_table_names',
    'ClientInfo',
    'RateLimitDecision',
    'RateLimiter',
    'AuditLogger'
]
