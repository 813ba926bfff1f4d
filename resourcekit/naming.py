"""
Naming conventions.

Definition documents use CamelCase names (``UserName``, ``CreateUser``).
Python-facing names (identifiers, operation names, client method names)
are snake_cased. Wire-facing names (param targets, data members, paths)
are used verbatim and never pass through here.
"""

from __future__ import annotations

import re

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")

_IRREGULAR_PLURALS = {
    "children": "child",
    "people": "person",
    "data": "data",
}


def underscore(name: str) -> str:
    """
    Convert a CamelCase name to snake_case.

    Examples:
        UserName -> user_name
        DBInstance -> db_instance
        VpcId -> vpc_id
    """
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    return name.replace("-", "_").lower()


def singularize(name: str) -> str | None:
    """
    Singular form of a snake_cased plural name, or None if not inflectable.

    Only the last word is inflected: ``access_keys`` -> ``access_key``.
    """
    head, _, last = name.rpartition("_")
    prefix = f"{head}_" if head else ""

    if last in _IRREGULAR_PLURALS:
        return prefix + _IRREGULAR_PLURALS[last]
    if last.endswith("ies") and len(last) > 3:
        return prefix + last[:-3] + "y"
    for suffix in ("sses", "xes", "ches", "shes"):
        if last.endswith(suffix):
            return prefix + last[:-2]
    if last.endswith("s") and not last.endswith("ss") and len(last) > 1:
        return prefix + last[:-1]
    return None


def strip_prefix(name: str, prefix: str) -> str:
    """Drop a leading parent name: ``BucketAcl`` under ``Bucket`` -> ``Acl``."""
    if name.startswith(prefix) and len(name) > len(prefix):
        return name[len(prefix):]
    return name
