"""
Request Parameter Projections.

A RequestParam writes one value into a request's parameter structure. It
pairs a target expression (where the value goes) with a value source
(where the value comes from).

Target grammar:
    name         set a top-level key
    a.b          set key b of the mapping under a
    name[]       append to the list under name
    a[i].b       set key b on element i of list a
    a[i].b[]     append to list b on element i of list a

Elements of ``a`` up to index ``i`` are created as empty mappings when
missing, so projections applied in declaration order build stable lists:

    person.name    <- "A"
    people[0].name <- "x"
    people[0].age  <- 1
    people[1].name <- "y"

    {"person": {"name": "A"},
     "people": [{"name": "x", "age": 1}, {"name": "y"}]}

Value sources are a closed set (ParamSourceType): an identifier of the
calling resource, a member of its data, or a string/integer/boolean
literal fixed at definition time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from resourcekit import paths
from resourcekit.errors import DefinitionError

if TYPE_CHECKING:
    from resourcekit.resource import Resource


class TargetFormat(str, Enum):
    """Shape of a target expression."""

    SIMPLE = "simple"
    NESTED = "nested"
    LIST = "list"
    LIST_MEMBER = "list_member"
    NESTED_LIST = "nested_list"


class ParamSourceType(str, Enum):
    """Where a projected value comes from."""

    IDENTIFIER = "identifier"
    DATA_MEMBER = "dataMember"
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"

    @property
    def literal(self) -> bool:
        return self in (ParamSourceType.STRING, ParamSourceType.INTEGER, ParamSourceType.BOOLEAN)


_TARGET_PATTERNS = (
    (re.compile(r"^(\w+)$"), TargetFormat.SIMPLE),
    (re.compile(r"^(\w+)\.(\w+)$"), TargetFormat.NESTED),
    (re.compile(r"^(\w+)\[\]$"), TargetFormat.LIST),
    (re.compile(r"^(\w+)\[(\d+)\]\.(\w+)$"), TargetFormat.LIST_MEMBER),
    (re.compile(r"^(\w+)\[(\d+)\]\.(\w+)\[\]$"), TargetFormat.NESTED_LIST),
)


# =============================================================================
# Targets
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParamTarget:
    """A parsed target expression."""

    expression: str
    format: TargetFormat
    key: str
    index: int | None = None
    member: str | None = None

    @classmethod
    def parse(cls, expression: str) -> ParamTarget:
        """
        Parse a target expression.

        Raises:
            DefinitionError: If the expression matches no supported form
        """
        for pattern, target_format in _TARGET_PATTERNS:
            match = pattern.match(expression)
            if match is None:
                continue
            groups = match.groups()
            if target_format in (TargetFormat.SIMPLE, TargetFormat.LIST):
                return cls(expression, target_format, groups[0])
            if target_format is TargetFormat.NESTED:
                return cls(expression, target_format, groups[0], member=groups[1])
            return cls(expression, target_format, groups[0], int(groups[1]), groups[2])

        raise DefinitionError(f"invalid param target expression {expression!r}")

    def apply(self, params: dict[str, Any], value: Any) -> dict[str, Any]:
        """Write value into params in place and return params."""
        if self.format is TargetFormat.SIMPLE:
            params[self.key] = value
        elif self.format is TargetFormat.NESTED:
            params.setdefault(self.key, {})[self.member] = value
        elif self.format is TargetFormat.LIST:
            params.setdefault(self.key, []).append(value)
        elif self.format is TargetFormat.LIST_MEMBER:
            self._element(params)[self.member] = value
        elif self.format is TargetFormat.NESTED_LIST:
            self._element(params).setdefault(self.member, []).append(value)
        return params

    def _element(self, params: dict[str, Any]) -> dict[str, Any]:
        items = params.setdefault(self.key, [])
        while len(items) <= self.index:
            items.append({})
        if items[self.index] is None:
            items[self.index] = {}
        return items[self.index]


# =============================================================================
# Params
# =============================================================================


@dataclass(frozen=True, slots=True)
class RequestParam:
    """
    One projection: a value source bound to a target.

    For IDENTIFIER sources ``source`` is the snake_case identifier name; for
    DATA_MEMBER it is a path into the resource data; for literals it is the
    value itself.
    """

    target: ParamTarget
    source_type: ParamSourceType
    source: Any

    @classmethod
    def build(cls, target: str, source_type: str | ParamSourceType, source: Any) -> RequestParam:
        """Construct a param from raw definition values, coercing literals."""
        try:
            source_type = ParamSourceType(source_type)
        except ValueError:
            raise DefinitionError(f"unhandled param source type {source_type!r}") from None

        if source_type is ParamSourceType.INTEGER:
            source = _integer(source)
        elif source_type is ParamSourceType.BOOLEAN:
            source = _boolean(source)
        elif source_type is ParamSourceType.STRING:
            source = str(source)

        return cls(ParamTarget.parse(target), source_type, source)

    def value(self, resource: Resource | None) -> Any:
        """Resolve the value against the calling resource."""
        if self.source_type.literal:
            return self.source
        if resource is None:
            raise DefinitionError(
                f"param {self.target.expression!r} reads from a resource but none was given"
            )
        if self.source_type is ParamSourceType.IDENTIFIER:
            return resource.identifiers[self.source]
        return paths.search(self.source, resource.data)

    def apply(self, params: dict[str, Any], resource: Resource | None) -> dict[str, Any]:
        return self.target.apply(params, self.value(resource))


def _integer(source: Any) -> int:
    if isinstance(source, bool):
        raise DefinitionError(f"invalid integer literal {source!r}")
    try:
        return int(source)
    except (TypeError, ValueError):
        raise DefinitionError(f"invalid integer literal {source!r}") from None


def _boolean(source: Any) -> bool:
    if isinstance(source, bool):
        return source
    if isinstance(source, str) and source.lower() in ("true", "false"):
        return source.lower() == "true"
    if isinstance(source, int) and source in (0, 1):
        return bool(source)
    raise DefinitionError(f"invalid boolean literal {source!r}")
