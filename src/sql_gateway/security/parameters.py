# src/sql_gateway/security/parameters.py
import json
from typing import Any, List, Optional

from sql_gateway.core.exceptions.custom_exceptions import ParameterValidationError

MAX_PARAMETER_LENGTH = 1000


def _to_text(value: Any) -> str:
    # Render values the way a JSON client wrote them
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(',', ':'))
    return str(value)


def sanitize_parameters(params: Any) -> List[Optional[str]]:
    """
    Normalize bind parameters to strings or None.

    Anything that is not a list becomes an empty list. Type fidelity is not
    kept: ``5`` and ``"5"`` both come out as ``"5"``, the database casts them.

    Args:
        params (Any): Parameters as decoded from the request body

    Returns:
        List[Optional[str]]: Sanitized parameters in their original order

    Raises:
        ParameterValidationError: If a parameter is longer than 1000 characters
    """
    if not isinstance(params, (list, tuple)):
        return []

    sanitized = []
    for index, param in enumerate(params):
        if param is None:
            sanitized.append(None)
            continue

        text = _to_text(param)
        if len(text) > MAX_PARAMETER_LENGTH:
            raise ParameterValidationError(
                f'Parameter exceeds maximum length of {MAX_PARAMETER_LENGTH} characters',
                index=index
            )
        sanitized.append(text)

    return sanitized
