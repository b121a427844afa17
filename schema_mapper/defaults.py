"""Default value literal normalization."""

import re
from typing import Iterable, Optional

# Date/time types whose default literals need quoting in the target engine.
DEFAULT_SENSITIVE_TYPES = ("DATE", "TIME", "DATETIME", "TIMESTAMP", "YEAR")

_FUNCTION_CALL = re.compile(r"^.+\(\)$")


def normalize_default(
    native_type: str,
    raw_default: Optional[str],
    sensitive_types: Iterable[str] = DEFAULT_SENSITIVE_TYPES,
) -> str:
    """Quote ``raw_default`` when the target engine would read it as an expression.

    For default-sensitive types a function call (``now()``), the
    ``CURRENT_TIMESTAMP`` keyword or an empty default is kept as-is and any
    other literal is wrapped in single quotes. Other types are untouched.
    """
    value = raw_default or ""
    if native_type.strip().upper() not in {t.strip().upper() for t in sensitive_types}:
        return value
    if _FUNCTION_CALL.match(value) or value.upper() == "CURRENT_TIMESTAMP" or value == "":
        return value
    return f"'{value}'"
