"""
Resources.

A ResourceType is the compiled template for one kind of API object: an
ordered list of identifier names, a default client factory, an optional
load operation and a registry of named operations. A Resource is one
instance, identified by its type and identifier values.

Operations are looked up in the type's registry at call time; nothing is
added to Python classes. Attribute access is a convenience over that
registry:

    user = service_model.resource_type("User")("jane")
    user.name                 # identifier
    user.delete()             # action, one API call
    user.access_keys()        # enumeration (generator)
    user.access_key("AKIA")   # reference needing an argument
    user.invoke("delete")     # explicit registry lookup

Data:
    ``data`` is loaded lazily on first access through the type's load
    operation and cached. ``load()``/``reload()`` always make a call and
    replace the cached value. Assigning ``data`` replaces it as well.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from resourcekit.errors import (
    DefinitionError,
    IdentifierError,
    OperationNotSupportedError,
    ResourceError,
    UnknownOperationError,
)
from resourcekit.operations import InvocationContext, Operation, OperationKind

logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset(
    {"client", "data", "data_loaded", "identifiers", "invoke", "load", "reload", "resource_type"}
)


def _identifier_getter(name: str) -> Callable[[Resource], Any]:
    def getter(resource: Resource) -> Any:
        return resource.identifiers[name]

    getter.__name__ = name
    return getter


# =============================================================================
# Resource Type
# =============================================================================


class ResourceType:
    """
    Compiled resource template shared by all instances of one kind.

    Types are mutable while a definition is being compiled and frozen
    afterwards; any later change raises DefinitionError.
    """

    def __init__(
        self,
        name: str,
        identifiers: tuple[str, ...] | list[str] = (),
        *,
        client_factory: Callable[[], Any] | None = None,
    ):
        self.name = name
        self.client_factory = client_factory
        self._identifiers: list[str] = []
        self._accessors: list[tuple[str, Callable[[Resource], Any]]] = []
        self._operations: dict[str, Operation] = {}
        self._load_operation: Operation | None = None
        self._frozen = False
        for identifier in identifiers:
            self.add_identifier(identifier)

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(self._identifiers)

    @property
    def identifier_accessors(self) -> tuple[tuple[str, Callable[[Resource], Any]], ...]:
        """Ordered (name, getter) pairs, one per identifier."""
        return tuple(self._accessors)

    @property
    def load_operation(self) -> Operation | None:
        return self._load_operation

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_identifier(self, name: str) -> None:
        self._check_mutable()
        if name in self._identifiers:
            raise DefinitionError(f"{self.name} has duplicate identifier '{name}'")
        if name in RESERVED_NAMES:
            raise DefinitionError(f"{self.name} identifier '{name}' is a reserved name")
        self._identifiers.append(name)
        self._accessors.append((name, _identifier_getter(name)))

    def set_load_operation(self, operation: Operation) -> None:
        self._check_mutable()
        if operation.kind is not OperationKind.LOAD:
            raise DefinitionError(f"expected a load operation, got {operation.kind.value}")
        if self._load_operation is not None:
            raise DefinitionError(f"{self.name} already has a load operation")
        self._load_operation = operation

    def add_operation(self, name: str, operation: Operation) -> None:
        """
        Register an operation.

        Raises:
            DefinitionError: If the type is frozen or the name is taken
        """
        self._check_mutable()
        if name in self._operations:
            raise DefinitionError(f"{self.name} already defines operation '{name}'")
        if name in self._identifiers or name in RESERVED_NAMES:
            raise DefinitionError(f"{self.name} operation '{name}' shadows an attribute")
        self._operations[name] = operation
        logger.debug(f"[resource_type:{self.name}] Added operation {name} ({operation.kind.value})")

    def has_operation(self, name: str) -> bool:
        return name in self._operations

    def operation(self, name: str) -> Operation:
        """
        Get an operation by name.

        Raises:
            UnknownOperationError: If no operation has that name
        """
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperationError(name, self.name) from None

    def operations(self) -> Mapping[str, Operation]:
        """Read-only view of the registry, in definition order."""
        return MappingProxyType(self._operations)

    @property
    def operation_names(self) -> list[str]:
        return list(self._operations)

    def freeze(self) -> None:
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise DefinitionError(f"{self.name} is frozen")

    def __call__(
        self,
        *args: Any,
        client: Any = None,
        data: Any = None,
        **identifiers: Any,
    ) -> Resource:
        """
        Construct a resource.

        A single positional value is accepted only by types with exactly
        one identifier; otherwise every identifier must be named.
        """
        if args:
            if len(self._identifiers) != 1 or len(args) > 1:
                raise IdentifierError(
                    f"{self.name} takes identifiers by name: {list(self._identifiers)}"
                )
            name = self._identifiers[0]
            if name in identifiers:
                raise IdentifierError(f"identifier '{name}' given twice")
            identifiers[name] = args[0]
        return Resource(self, client=client, data=data, **identifiers)

    def __repr__(self) -> str:
        return f"ResourceType({self.name!r}, identifiers={list(self._identifiers)})"


# =============================================================================
# Resource
# =============================================================================


class Resource:
    """One API object: a type, identifier values, a client and cached data."""

    def __init__(
        self,
        resource_type: ResourceType,
        *,
        client: Any = None,
        data: Any = None,
        **identifiers: Any,
    ):
        self._type = resource_type
        self._identifiers = MappingProxyType(self._extract_identifiers(identifiers))
        self._client = client if client is not None else self._default_client()
        self._data = data
        self._data_loaded = data is not None
        self._references: dict[str, Any] = {}

    def _extract_identifiers(self, given: dict[str, Any]) -> dict[str, Any]:
        declared = self._type.identifiers
        unexpected = [name for name in given if name not in declared]
        if unexpected:
            raise IdentifierError(
                f"unexpected identifier(s) {unexpected} for {self._type.name}; "
                f"declared: {list(declared)}"
            )

        identifiers = {}
        for name in declared:
            value = given.get(name)
            if value is None:
                raise IdentifierError(f"missing required identifier '{name}' for {self._type.name}")
            identifiers[name] = value
        return identifiers

    def _default_client(self) -> Any:
        if self._type.client_factory is None:
            raise ResourceError(f"no client given and {self._type.name} has no client factory")
        return self._type.client_factory()

    @property
    def resource_type(self) -> ResourceType:
        return self._type

    @property
    def identifiers(self) -> Mapping[str, Any]:
        return self._identifiers

    @property
    def client(self) -> Any:
        return self._client

    # =========================================================================
    # Data
    # =========================================================================

    @property
    def data(self) -> Any:
        """Resource data, loaded on first access."""
        if not self._data_loaded:
            self.load()
        return self._data

    @data.setter
    def data(self, value: Any) -> None:
        self._data = value
        self._data_loaded = True

    @property
    def data_loaded(self) -> bool:
        return self._data_loaded

    def load(self, params: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Resource:
        """
        Load data with one API call, replacing any cached data.

        Raises:
            OperationNotSupportedError: If the type has no load operation
        """
        operation = self._type.load_operation
        if operation is None:
            raise OperationNotSupportedError(f"load not defined for {self._type.name}")
        logger.debug(f"[resource] Loading {self!r}")
        operation.invoke(InvocationContext(self, params=_merge(params, kwargs)))
        return self

    reload = load

    # =========================================================================
    # Operations
    # =========================================================================

    def invoke(self, name: str, *args: Any, **params: Any) -> Any:
        """Look up an operation by name and call it."""
        return self._bind(name, self._type.operation(name))(*args, **params)

    def _bind(self, name: str, operation: Operation) -> Callable[..., Any]:
        if operation.kind is OperationKind.REFERENCE:
            if operation.requires_argument:

                def method(argument: Any) -> Any:
                    return operation.invoke(InvocationContext(self, argument=argument))

            else:

                def method() -> Any:
                    if name not in self._references:
                        self._references[name] = operation.invoke(InvocationContext(self))
                    return self._references[name]

        else:

            def method(params: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Any:
                return operation.invoke(InvocationContext(self, params=_merge(params, kwargs)))

        method.__name__ = name
        method.__qualname__ = f"{self._type.name}.{name}"
        return method

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._identifiers:
            return self._identifiers[name]
        return self._bind(name, self._type.operation(name))

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self._identifiers, *self._type.operation_names})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self._type.name == other._type.name and dict(self._identifiers) == dict(
            other._identifiers
        )

    def __hash__(self) -> int:
        return hash((self._type.name, tuple(self._identifiers.items())))

    def __repr__(self) -> str:
        identifiers = ", ".join(f"{name}={value!r}" for name, value in self._identifiers.items())
        return f"{self._type.name}({identifiers})"


def _merge(params: Mapping[str, Any] | None, kwargs: dict[str, Any]) -> dict[str, Any] | None:
    if params is None and not kwargs:
        return None
    return {**(params or {}), **kwargs}
