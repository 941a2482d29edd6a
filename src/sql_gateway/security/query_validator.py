# src/sql_gateway/security/query_validator.py
"""
Static security validation of SQL text.

Only single, comment-free SELECT statements pass. All checks are substring
matches on the uppercased query rather than a parse, so the validator errs on
the side of rejecting: a column called ``update_count`` or ``created_at`` trips
the keyword denylist, and a ``--`` inside a string literal trips the comment
rule. No I/O and no state, so calling it twice yields equal results.
"""
from dataclasses import dataclass
from typing import Any, Tuple

MAX_QUERY_LENGTH = 10000

DANGEROUS_KEYWORDS: Tuple[str, ...] = (
    # Data modification
    'INSERT', 'UPDATE', 'DELETE', 'DROP', 'CREATE', 'ALTER', 'TRUNCATE',
    # Procedural invocation
    'EXEC', 'EXECUTE', 'CALL', 'PROCEDURE', 'FUNCTION',
    # File operations
    'COPY', 'LOAD', 'OUTFILE', 'INFILE', 'IMPORT', 'EXPORT',
    # Privileges and session state
    'GRANT', 'REVOKE', 'SET', 'RESET', 'SHOW',
    # Transaction control
    'BEGIN', 'COMMIT', 'ROLLBACK', 'SAVEPOINT',
    # Introspection
    'DESCRIBE', 'EXPLAIN', 'ANALYZE',
    # PostgreSQL functions and catalogs
    'PG_READ_FILE', 'PG_WRITE_FILE', 'PG_EXECUTE',
    'PG_SHADOW', 'PG_USER', 'PG_DATABASE', 'PG_TABLES',
)

DANGEROUS_TABLES: Tuple[str, ...] = (
    'information_schema',
    'pg_catalog',
    'pg_shadow',
    'pg_user',
    'pg_database',
    'pg_tables',
    'pg_views',
    'pg_indexes',
    'pg_stat_',
    'pg_settings',
    'pg_roles',
    'pg_authid',
)

DANGEROUS_FUNCTIONS: Tuple[str, ...] = (
    'PG_READ_FILE', 'PG_WRITE_FILE', 'PG_EXECUTE', 'COPY_FROM_PROGRAM',
    'DBLINK', 'PG_STAT_FILE', 'PG_LS_DIR', 'PG_READ_BINARY_FILE',
)

COMMENT_MARKERS: Tuple[str, ...] = ('--', '/*', '*/')


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one query."""

    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    normalized_query: str = ""
    statement_count: int = 0


def validate_query(query: Any) -> ValidationResult:
    """
    Validate a SQL query against the read-only security policy.

    Args:
        query (Any): Raw SQL text as received from the client

    Returns:
        ValidationResult: Errors block execution, warnings are advisory
    """
    if not query or not isinstance(query, str):
        return ValidationResult(is_valid=False, errors=('Query must be a non-empty string',))

    errors = []
    warnings = []

    original_query = query.strip()
    normalized_query = original_query.upper()

    if len(original_query) > MAX_QUERY_LENGTH:
        errors.append(f'Query exceeds maximum length of {MAX_QUERY_LENGTH:,} characters')

    if not normalized_query.startswith('SELECT'):
        errors.append('Only SELECT statements are allowed')

    found_keywords = [keyword for keyword in DANGEROUS_KEYWORDS if keyword in normalized_query]
    if found_keywords:
        errors.append(f"Dangerous keywords detected: {', '.join(found_keywords)}")

    statements = [statement for statement in original_query.split(';') if statement.strip()]
    if len(statements) > 1:
        errors.append('Multiple statements are not allowed')

    if any(marker in original_query for marker in COMMENT_MARKERS):
        errors.append('Comments are not allowed in queries')

    found_tables = [table for table in DANGEROUS_TABLES if table.upper() in normalized_query]
    if found_tables:
        errors.append(f"Access to system tables/schemas is not allowed: {', '.join(found_tables)}")

    if 'UNION' in normalized_query:
        errors.append('UNION statements are not allowed')

    if '(SELECT' in normalized_query and (
            'INFORMATION_SCHEMA' in normalized_query or
            'PG_CATALOG' in normalized_query or
            'PG_' in normalized_query):
        errors.append('Subqueries accessing system information are not allowed')

    found_functions = [function for function in DANGEROUS_FUNCTIONS if function in normalized_query]
    if found_functions:
        errors.append(f"Dangerous functions detected: {', '.join(found_functions)}")

    # Advisory only
    if 'CROSS JOIN' in normalized_query:
        warnings.append('CROSS JOIN detected - this may be expensive')

    if 'ORDER BY' in normalized_query and 'LIMIT' not in normalized_query:
        warnings.append('ORDER BY without LIMIT may be expensive for large datasets')

    if '~' in normalized_query or 'SIMILAR TO' in normalized_query:
        warnings.append('Regular expressions detected - ensure they are not complex')

    return ValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
        normalized_query=normalized_query,
        statement_count=len(statements)
    )
