"""
Definition Compiler.

Turns a definition document into a ServiceModel: one ResourceType per
declared resource plus a zero-identifier root type for the service, each
with its operations attached. Compilation happens once; afterwards calls
flow through Request, Builder and Operation only.

Steps:
    1. Create the root type and one type per resource (identifiers).
    2. Attach load operations.
    3. Attach actions, classified by their declared fields.
    4. Attach hasMany / hasSome / hasOne associations.
    5. Attach parent <-> child references for subResources.
    6. Expose types with fewer than two identifiers on the root.

Every name lookup is resolved here. An unknown type, an ambiguous builder
or a malformed rule raises DefinitionError before any resource exists.

Usage:
    model = Definition(document).define_service("iam", client_factory=make_client)

    iam = model()                     # root resource
    user = iam.user("jane")           # root reference
    user.load().data                  # load operation
    for key in user.access_keys():    # hasMany enumeration
        key.delete()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from resourcekit import paths
from resourcekit.builder import Builder
from resourcekit.errors import DefinitionError
from resourcekit.naming import singularize, strip_prefix, underscore
from resourcekit.operations import Operation
from resourcekit.params import ParamSourceType, RequestParam
from resourcekit.request import Request
from resourcekit.resource import Resource, ResourceType
from resourcekit.schemas import (
    ActionDefinition,
    AssociationDefinition,
    ContainerDefinition,
    HasManyDefinition,
    RequestDefinition,
    ResourceDefinition,
    ResourceRefDefinition,
    ServiceDefinition,
)
from resourcekit.sources import BuilderSource, SourceType

logger = logging.getLogger(__name__)


# =============================================================================
# Service Model
# =============================================================================


@dataclass(frozen=True, slots=True)
class ServiceModel:
    """
    A compiled service.

    Attributes:
        name: Service name
        root: Zero-identifier type for the service itself
        resource_types: Resource types by definition name
    """

    name: str
    root: ResourceType
    resource_types: Mapping[str, ResourceType]

    def __call__(self, client: Any = None) -> Resource:
        """Construct the service root resource."""
        return self.root(client=client)

    def resource_type(self, name: str) -> ResourceType:
        try:
            return self.resource_types[name]
        except KeyError:
            raise KeyError(
                f"service '{self.name}' has no resource type '{name}'. "
                f"Available: {list(self.resource_types)}"
            ) from None

    def __iter__(self) -> Iterator[ResourceType]:
        return iter(self.resource_types.values())

    def __repr__(self) -> str:
        return f"ServiceModel({self.name!r}, resource_types={list(self.resource_types)})"


# =============================================================================
# Compiler
# =============================================================================


class Definition:
    """
    A parsed definition document.

    Raises:
        DefinitionError: If the document does not match the schema
    """

    def __init__(self, source: Mapping[str, Any] | ServiceDefinition):
        if isinstance(source, ServiceDefinition):
            self.source = source
        else:
            try:
                self.source = ServiceDefinition.model_validate(source)
            except ValidationError as e:
                raise DefinitionError(f"invalid resource definition: {e}") from e

    def define_service(
        self,
        name: str,
        client_factory: Callable[[], Any] | None = None,
    ) -> ServiceModel:
        """Compile the document into a frozen ServiceModel."""
        compiler = _Compiler(self.source, name, client_factory)
        model = compiler.compile()
        logger.info(
            f"[definition] Compiled service {name} | "
            f"types={len(model.resource_types)} | "
            f"root_operations={len(model.root.operation_names)}"
        )
        return model


class _Compiler:
    def __init__(
        self,
        source: ServiceDefinition,
        service_name: str,
        client_factory: Callable[[], Any] | None,
    ):
        self._source = source
        self._service_name = service_name
        self._client_factory = client_factory
        self._root = ResourceType(service_name, client_factory=client_factory)
        self._types: dict[str, ResourceType] = {}

    def compile(self) -> ServiceModel:
        resources = self._source.resources

        for name, definition in resources.items():
            self._types[name] = ResourceType(
                name,
                [underscore(identifier) for identifier in definition.identifiers],
                client_factory=self._client_factory,
            )

        for name, definition in resources.items():
            if definition.load is not None:
                self._define_load(self._types[name], definition)

        self._define_container(self._root, self._source.service)
        for name, definition in resources.items():
            self._define_container(self._types[name], definition)

        for name, definition in resources.items():
            if definition.sub_resources is not None:
                self._define_sub_resources(self._types[name], definition)

        self._define_root_references()

        for resource_type in (self._root, *self._types.values()):
            resource_type.freeze()

        return ServiceModel(
            name=self._service_name,
            root=self._root,
            resource_types=MappingProxyType(dict(self._types)),
        )

    # =========================================================================
    # Rules
    # =========================================================================

    def _define_load(self, resource_type: ResourceType, definition: ResourceDefinition) -> None:
        load = definition.load
        resource_type.set_load_operation(
            Operation.load(self._request(load.request, resource_type), load.path)
        )

    def _define_container(self, owner: ResourceType, definition: ContainerDefinition) -> None:
        for name, action in definition.actions.items():
            owner.add_operation(underscore(name), self._action(owner, name, action))

        for name, has_many in definition.has_many.items():
            self._define_has_many(owner, name, has_many)

        for name, association in definition.has_some.items():
            target = self._lookup(association.type, owner, name)
            builder = self._builder(owner, target, association.resource)
            self._check_reference(owner, name, builder)
            owner.add_operation(underscore(name), Operation.reference(builder))

        for name, association in definition.has_one.items():
            self._define_has_one(owner, name, association)

    def _action(self, owner: ResourceType, name: str, action: ActionDefinition) -> Operation:
        request = self._request(action.request, owner)
        if action.resource is not None:
            target = self._lookup(action.resource.type, owner, name)
            builder = self._builder(owner, target, action.resource)
            if builder.plural:
                return Operation.enumerate_resource(request, builder)
            return Operation.resource(request, builder)
        if action.path is not None:
            if paths.is_plural(action.path):
                return Operation.enumerate_data(request, action.path)
            return Operation.data(request, action.path)
        return Operation.basic(request)

    def _define_has_many(
        self, owner: ResourceType, name: str, definition: HasManyDefinition
    ) -> None:
        target = self._lookup(definition.type, owner, name)
        method_name = underscore(name)
        singular = singularize(method_name)

        if definition.enumerate is not None:
            builder = self._builder(owner, target, definition.enumerate.resource)
            if not builder.plural:
                raise DefinitionError(
                    f"{owner.name}.{name} enumerate needs a plural identifier source"
                )
            owner.add_operation(
                method_name,
                Operation.enumerate_resource(
                    self._request(definition.enumerate.request, owner), builder
                ),
            )

        if definition.create is None and definition.resource is None:
            return
        if singular is None:
            raise DefinitionError(f"cannot derive a singular name from {owner.name}.{name}")

        if definition.create is not None:
            owner.add_operation(
                f"create_{singular}",
                Operation.resource(
                    self._request(definition.create.request, owner),
                    self._builder(owner, target, definition.create.resource),
                ),
            )

        if definition.resource is not None:
            builder = self._builder(owner, target, definition.resource)
            self._check_reference(owner, name, builder)
            owner.add_operation(singular, Operation.reference(builder))

    def _define_has_one(
        self, owner: ResourceType, name: str, definition: AssociationDefinition
    ) -> None:
        target = self._lookup(definition.type, owner, name)
        builder = self._builder(owner, target, definition.resource)
        self._check_reference(owner, name, builder)
        if builder.plural:
            raise DefinitionError(f"{owner.name}.{name} hasOne resolves to several resources")
        owner.add_operation(underscore(name), Operation.reference(builder))

    def _define_sub_resources(
        self, parent: ResourceType, definition: ResourceDefinition
    ) -> None:
        sub_resources = definition.sub_resources
        mapping = {
            underscore(parent_id): underscore(child_id)
            for parent_id, child_id in sub_resources.identifiers.items()
        }
        for child_name in sub_resources.resources:
            child = self._lookup(child_name, parent, "subResources")

            down = [
                BuilderSource(SourceType.IDENTIFIER, parent_id, child_id)
                for parent_id, child_id in mapping.items()
            ]
            up = [
                BuilderSource(SourceType.IDENTIFIER, child_id, parent_id)
                for parent_id, child_id in mapping.items()
            ]
            self._check_sources(parent, down)
            self._check_sources(child, up)

            parent.add_operation(
                underscore(strip_prefix(child_name, parent.name)),
                Operation.reference(Builder(child, down)),
            )
            child.add_operation(
                underscore(parent.name),
                Operation.reference(Builder(parent, up)),
            )

    def _define_root_references(self) -> None:
        for name, resource_type in self._types.items():
            method_name = underscore(name)
            if len(resource_type.identifiers) > 1 or self._root.has_operation(method_name):
                continue
            self._root.add_operation(method_name, Operation.reference(Builder(resource_type)))

    # =========================================================================
    # Components
    # =========================================================================

    def _lookup(self, type_name: str | None, owner: ResourceType, rule: str) -> ResourceType:
        if type_name is None:
            raise DefinitionError(f"{owner.name}.{rule} does not name a resource type")
        try:
            return self._types[type_name]
        except KeyError:
            raise DefinitionError(
                f"{owner.name}.{rule} references unknown resource type '{type_name}'"
            ) from None

    def _request(self, definition: RequestDefinition, owner: ResourceType) -> Request:
        params = []
        for param in definition.params:
            source = param.source
            if param.source_type == ParamSourceType.IDENTIFIER.value:
                source = underscore(str(source))
                if source not in owner.identifiers:
                    raise DefinitionError(
                        f"{owner.name} request {definition.operation} reads unknown "
                        f"identifier '{param.source}'"
                    )
            params.append(RequestParam.build(param.target, param.source_type, source))
        return Request(underscore(definition.operation), params)

    def _builder(
        self, owner: ResourceType, target: ResourceType, definition: ResourceRefDefinition
    ) -> Builder:
        sources = []
        for source in definition.identifiers:
            value = source.source
            if source.source_type == SourceType.IDENTIFIER.value:
                value = underscore(value)
            sources.append(BuilderSource.build(source.source_type, value, underscore(source.target)))
        self._check_sources(owner, sources)
        return Builder(target, sources, load_path=definition.path)

    @staticmethod
    def _check_sources(owner: ResourceType, sources: list[BuilderSource]) -> None:
        for source in sources:
            if source.source_type is SourceType.IDENTIFIER and source.source not in owner.identifiers:
                raise DefinitionError(
                    f"{owner.name} has no identifier '{source.source}' to build "
                    f"'{source.target}' from"
                )

    @staticmethod
    def _check_reference(owner: ResourceType, name: str, builder: Builder) -> None:
        if builder.reads_response:
            raise DefinitionError(
                f"{owner.name}.{name} is a reference and cannot read from a response"
            )
