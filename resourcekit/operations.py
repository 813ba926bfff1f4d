"""
Operations.

An Operation is one invocable behavior attached to a ResourceType and
shared by all of its instances. Operations hold no state between calls;
each invocation receives an InvocationContext.

Kinds:
    BASIC               one call, returns the raw ClientResponse
    DATA                one call, returns the value at ``path`` ("$" = all)
    ENUMERATE_DATA      paginated call, yields each value the path resolves to
    RESOURCE            one call, builds resource(s) from the response
    ENUMERATE_RESOURCE  paginated call, yields resources page by page
    REFERENCE           no call, builds a related resource from identifiers
    LOAD                one call, replaces the calling resource's data

Enumerations:
    ENUMERATE_* kinds return generators. Nothing is requested until the
    first element is consumed, each page is fetched only when the consumer
    moves past the previous page, and a generator cannot be rewound:
    iterating again requires invoking the operation again.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from resourcekit import paths
from resourcekit.builder import Builder
from resourcekit.errors import DefinitionError
from resourcekit.request import Request

if TYPE_CHECKING:
    from resourcekit.client import ClientResponse
    from resourcekit.resource import Resource

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    """Closed set of operation variants."""

    BASIC = "basic"
    DATA = "data"
    ENUMERATE_DATA = "enumerate_data"
    RESOURCE = "resource"
    ENUMERATE_RESOURCE = "enumerate_resource"
    REFERENCE = "reference"
    LOAD = "load"

    @property
    def needs_request(self) -> bool:
        return self is not OperationKind.REFERENCE

    @property
    def needs_builder(self) -> bool:
        return self in (
            OperationKind.RESOURCE,
            OperationKind.ENUMERATE_RESOURCE,
            OperationKind.REFERENCE,
        )

    @property
    def needs_path(self) -> bool:
        return self in (OperationKind.DATA, OperationKind.ENUMERATE_DATA, OperationKind.LOAD)


@dataclass(frozen=True, slots=True)
class InvocationContext:
    """
    Per-call context.

    Attributes:
        resource: The calling resource (its client issues the calls)
        params: Extra request parameters supplied by the caller
        argument: Caller argument for references that need one
        response: The response being turned into resources, if any
    """

    resource: Resource
    params: Mapping[str, Any] | None = None
    argument: Any = None
    response: ClientResponse | None = None

    def with_response(self, response: ClientResponse) -> InvocationContext:
        return replace(self, response=response)


@dataclass(frozen=True, slots=True)
class Operation:
    """
    One operation variant.

    Use the named constructors (Operation.basic, Operation.data, ...);
    each checks that the collaborators its kind needs were given and
    raises DefinitionError otherwise.
    """

    kind: OperationKind
    request: Request | None = None
    builder: Builder | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        if self.kind.needs_request and self.request is None:
            raise DefinitionError(f"missing required option 'request' for {self.kind.value}")
        if self.kind.needs_builder and self.builder is None:
            raise DefinitionError(f"missing required option 'builder' for {self.kind.value}")
        if self.kind.needs_path and not self.path:
            raise DefinitionError(f"missing required option 'path' for {self.kind.value}")
        if self.kind is OperationKind.ENUMERATE_RESOURCE and not self.builder.plural:
            raise DefinitionError("expected a plural builder for enumerate_resource")
        if self.path and self.path != paths.ROOT:
            paths.compile_path(self.path)

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def basic(cls, request: Request) -> Operation:
        return cls(OperationKind.BASIC, request=request)

    @classmethod
    def data(cls, request: Request, path: str) -> Operation:
        return cls(OperationKind.DATA, request=request, path=path)

    @classmethod
    def enumerate_data(cls, request: Request, path: str) -> Operation:
        return cls(OperationKind.ENUMERATE_DATA, request=request, path=path)

    @classmethod
    def resource(cls, request: Request, builder: Builder) -> Operation:
        return cls(OperationKind.RESOURCE, request=request, builder=builder)

    @classmethod
    def enumerate_resource(cls, request: Request, builder: Builder) -> Operation:
        return cls(OperationKind.ENUMERATE_RESOURCE, request=request, builder=builder)

    @classmethod
    def reference(cls, builder: Builder) -> Operation:
        return cls(OperationKind.REFERENCE, builder=builder)

    @classmethod
    def load(cls, request: Request, path: str) -> Operation:
        return cls(OperationKind.LOAD, request=request, path=path)

    # =========================================================================
    # Invocation
    # =========================================================================

    @property
    def requires_argument(self) -> bool:
        """True for references whose builder needs a caller argument."""
        return self.builder is not None and self.builder.requires_argument

    @property
    def plural(self) -> bool:
        if self.builder is not None:
            return self.builder.plural
        return self.path is not None and paths.is_plural(self.path)

    def invoke(self, context: InvocationContext) -> Any:
        kind = self.kind
        if kind is OperationKind.BASIC:
            return self.request.invoke(context)
        if kind is OperationKind.DATA:
            return self._extract(self.request.invoke(context))
        if kind is OperationKind.ENUMERATE_DATA:
            return self._each_value(context)
        if kind is OperationKind.RESOURCE:
            response = self.request.invoke(context)
            return self.builder.build(context.with_response(response))
        if kind is OperationKind.ENUMERATE_RESOURCE:
            return self._each_resource(context)
        if kind is OperationKind.REFERENCE:
            return self.builder.build(context)
        if kind is OperationKind.LOAD:
            resource = context.resource
            resource.data = self._extract(self.request.invoke(context))
            return resource
        raise DefinitionError(f"unhandled operation kind {kind!r}")

    def _extract(self, response: ClientResponse) -> Any:
        return paths.search(self.path, response.data)

    def _each_value(self, context: InvocationContext) -> Iterator[Any]:
        for page, response in enumerate(self.request.paginate(context), start=1):
            logger.debug(f"[operation:{self.request.method_name}] data page {page}")
            yield from self._extract(response) or ()

    def _each_resource(self, context: InvocationContext) -> Iterator[Resource]:
        for page, response in enumerate(self.request.paginate(context), start=1):
            logger.debug(f"[operation:{self.request.method_name}] resource page {page}")
            yield from self.builder.build(context.with_response(response))

    def __repr__(self) -> str:
        parts = [self.kind.value]
        if self.request is not None:
            parts.append(self.request.method_name)
        if self.builder is not None:
            parts.append(self.builder.resource_type.name)
        if self.path:
            parts.append(f"path={self.path!r}")
        return f"Operation({', '.join(parts)})"
