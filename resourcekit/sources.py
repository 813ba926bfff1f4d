"""
Identifier Sources.

A Builder assembles the identifiers of the resources it constructs from a
list of sources, each responsible for exactly one identifier (its target):

    ARGUMENT           the argument the caller passed to the operation
    IDENTIFIER         an identifier of the calling (parent) resource
    DATA_MEMBER        a path query against the parent's data
    REQUEST_PARAMETER  a parameter that was sent with the response's request
    RESPONSE_PATH      a path query against the response payload

A source whose expression addresses a list (``Users[].Name``) is plural,
and makes its Builder fan out into several resources.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from resourcekit import paths
from resourcekit.errors import DefinitionError, MissingArgumentError

if TYPE_CHECKING:
    from resourcekit.operations import InvocationContext


class SourceType(str, Enum):
    """Where an identifier value comes from."""

    ARGUMENT = "argument"
    IDENTIFIER = "identifier"
    DATA_MEMBER = "dataMember"
    REQUEST_PARAMETER = "requestParameter"
    RESPONSE_PATH = "responsePath"

    @property
    def reads_response(self) -> bool:
        return self in (SourceType.REQUEST_PARAMETER, SourceType.RESPONSE_PATH)


@dataclass(frozen=True, slots=True)
class BuilderSource:
    """
    Extracts one identifier value.

    Attributes:
        source_type: Kind of source
        source: Identifier name, path expression or parameter name
        target: Identifier name (snake_case) the value is assigned to
    """

    source_type: SourceType
    source: str
    target: str

    @classmethod
    def build(cls, source_type: str | SourceType, source: str, target: str) -> BuilderSource:
        try:
            source_type = SourceType(source_type)
        except ValueError:
            raise DefinitionError(f"unhandled identifier source type {source_type!r}") from None
        if source_type in (SourceType.DATA_MEMBER, SourceType.RESPONSE_PATH):
            paths.compile_path(source)
        return cls(source_type, source, target)

    @classmethod
    def argument(cls, target: str) -> BuilderSource:
        return cls(SourceType.ARGUMENT, target, target)

    @property
    def plural(self) -> bool:
        if self.source_type in (SourceType.DATA_MEMBER, SourceType.RESPONSE_PATH):
            return paths.is_plural(self.source)
        return False

    def extract(self, context: InvocationContext) -> Any:
        """Resolve the value (a list when plural) from the invocation context."""
        if self.source_type is SourceType.ARGUMENT:
            if context.argument is None:
                raise MissingArgumentError(f"missing required argument '{self.target}'")
            return context.argument

        if self.source_type is SourceType.IDENTIFIER:
            return context.resource.identifiers[self.source]

        if self.source_type is SourceType.DATA_MEMBER:
            return paths.search(self.source, context.resource.data)

        response = context.response
        if response is None:
            raise DefinitionError(
                f"{self.source_type.value} source for '{self.target}' needs a response"
            )
        if self.source_type is SourceType.REQUEST_PARAMETER:
            return response.params.get(self.source)
        return paths.search(self.source, response.data)
