# src/sql_gateway/security/complexity.py
"""Lexical cost heuristic for SQL queries."""
import re
from dataclasses import dataclass
from typing import Tuple

COMPLEXITY_THRESHOLD = 10

JOIN_WEIGHT = 2
SUBQUERY_WEIGHT = 3
LEADING_WILDCARD_WEIGHT = 5
EXPENSIVE_FUNCTION_WEIGHT = 2

MAX_JOINS = 5
MAX_SUBQUERIES = 3

EXPENSIVE_FUNCTIONS: Tuple[str, ...] = ('REGEXP', 'SIMILAR TO', 'SUBSTRING', 'POSITION')

_JOIN_PATTERN = re.compile(r'JOIN')
_SUBQUERY_PATTERN = re.compile(r'\(SELECT')


@dataclass(frozen=True)
class ComplexityAssessment:
    """Heuristic resource cost of a query."""

    score: int
    issues: Tuple[str, ...] = ()
    is_complex: bool = False


def assess_complexity(query: str, threshold: int = COMPLEXITY_THRESHOLD) -> ComplexityAssessment:
    """
    Score a query from its joins, subqueries, leading-wildcard LIKEs and
    pattern-matching functions.

    Args:
        query (str): SQL text
        threshold (int): Score above which the query counts as complex

    Returns:
        ComplexityAssessment: Score, human readable issues and the complex flag
    """
    normalized_query = (query or '').upper()
    score = 0
    issues = []

    join_count = len(_JOIN_PATTERN.findall(normalized_query))
    score += join_count * JOIN_WEIGHT
    if join_count > MAX_JOINS:
        issues.append(f'High number of JOINs detected: {join_count}')

    subquery_count = len(_SUBQUERY_PATTERN.findall(normalized_query))
    score += subquery_count * SUBQUERY_WEIGHT
    if subquery_count > MAX_SUBQUERIES:
        issues.append(f'High number of subqueries detected: {subquery_count}')

    if "LIKE '%" in normalized_query:
        score += LEADING_WILDCARD_WEIGHT
        issues.append('LIKE with leading wildcard detected - may be slow')

    for function in EXPENSIVE_FUNCTIONS:
        occurrences = normalized_query.count(function)
        if occurrences:
            score += occurrences * EXPENSIVE_FUNCTION_WEIGHT
            issues.append(f'Potentially expensive function detected: {function}')

    return ComplexityAssessment(score=score, issues=tuple(issues), is_complex=score > threshold)
