"""
Path queries.

Thin wrapper around JMESPath. The expression ``"$"`` is reserved to mean
"the value itself" and never reaches the JMESPath engine.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError
from jmespath.parser import ParsedResult

from resourcekit.errors import DefinitionError

ROOT = "$"


@lru_cache(maxsize=512)
def compile_path(expression: str) -> ParsedResult:
    """
    Parse a path expression once.

    Raises:
        DefinitionError: If the expression is not valid JMESPath
    """
    try:
        return jmespath.compile(expression)
    except JMESPathError as e:
        raise DefinitionError(f"invalid path expression {expression!r}: {e}") from e


def search(expression: str, value: Any) -> Any:
    """Evaluate a path expression against a nested value."""
    if expression == ROOT:
        return value
    return compile_path(expression).search(value)


def is_plural(expression: str) -> bool:
    """True if the expression addresses a list of values (``Users[].Name``)."""
    return "[" in expression
