# src/sql_gateway/security/table_extractor.py
import re
from typing import List

# Schema-qualified names, aliases and CTEs are not resolved
_TABLE_REFERENCE = re.compile(r'\b(?:FROM|JOIN)\s+([A-Za-z_][A-Za-z0-9_]*)', re.IGNORECASE)


def extract_table_names(query: str) -> List[str]:
    """
    Collect identifiers that follow FROM or JOIN, in order of first appearance.

    Only used for audit logging and response metadata.
    """
    tables: List[str] = []
    seen = set()

    for match in _TABLE_REFERENCE.finditer(query or ''):
        name = match.group(1)
        if name.lower() not in seen:
            seen.add(name.lower())
            tables.append(name)

    return tables
