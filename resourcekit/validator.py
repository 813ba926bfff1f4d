"""
Definition Validator.

Lints a raw definition document and reports every problem it finds as a
human-readable message, without raising. Definition compilation still
fails fast on the first hard error; the validator is for authors who want
the whole list at once.

Usage:
    errors = validate_definition(document)
    for error in errors:
        print(error)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from resourcekit.errors import DefinitionError
from resourcekit.params import ParamTarget
from resourcekit.schemas import ContainerDefinition, RequestDefinition, ServiceDefinition

logger = logging.getLogger(__name__)

SCHEMA_INVALID = "Document does not match the definition schema: %s (%s)"
ID_DUPLICATED = "Resource '%s' has duplicate identifiers."
ID_PREFIXED = "Resource '%s' identifier '%s' should not be prefixed by the resource name."
LOAD_REQUIRES_SHAPE = "Resource '%s' has defined 'load' but has not defined 'shape'."
INVALID_PARAM_TARGET = "%s request defines a param target of \"%s\" which is invalid."
UNKNOWN_TYPE = "%s references an undefined resource type '%s'."
UNKNOWN_SUB_RESOURCE = "Resource '%s' declares an undefined sub-resource '%s'."


class DefinitionValidator:
    """Collects lint findings for one document in ``errors``."""

    def __init__(self, document: Mapping[str, Any]):
        self.errors: list[str] = []
        try:
            self._definition = ServiceDefinition.model_validate(document)
        except ValidationError as e:
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                self.errors.append(SCHEMA_INVALID % (location, error["msg"]))
            return
        self._validate()

    @property
    def valid(self) -> bool:
        return not self.errors

    def _validate(self) -> None:
        resources = self._definition.resources
        self._validate_container("Service", self._definition.service)

        for name, resource in resources.items():
            if len(set(resource.identifiers)) != len(resource.identifiers):
                self.errors.append(ID_DUPLICATED % name)
            for identifier in resource.identifiers:
                if identifier.startswith(name) and identifier != name:
                    self.errors.append(ID_PREFIXED % (name, identifier))
            if resource.load is not None:
                if resource.shape is None:
                    self.errors.append(LOAD_REQUIRES_SHAPE % name)
                self._validate_request(f"Resource '{name}' load", resource.load.request)
            if resource.sub_resources is not None:
                for child in resource.sub_resources.resources:
                    if child not in resources:
                        self.errors.append(UNKNOWN_SUB_RESOURCE % (name, child))
            self._validate_container(f"Resource '{name}'", resource)

    def _validate_container(self, label: str, container: ContainerDefinition) -> None:
        for name, action in container.actions.items():
            self._validate_request(f"{label} action '{name}'", action.request)
            if action.resource is not None:
                self._validate_type(f"{label} action '{name}'", action.resource.type)

        for name, has_many in container.has_many.items():
            self._validate_type(f"{label} hasMany '{name}'", has_many.type)
            for rule in (has_many.enumerate, has_many.create):
                if rule is not None:
                    self._validate_request(f"{label} hasMany '{name}'", rule.request)

        for kind, associations in (("hasSome", container.has_some), ("hasOne", container.has_one)):
            for name, association in associations.items():
                self._validate_type(f"{label} {kind} '{name}'", association.type)

    def _validate_request(self, label: str, request: RequestDefinition) -> None:
        for param in request.params:
            try:
                ParamTarget.parse(param.target)
            except DefinitionError:
                self.errors.append(INVALID_PARAM_TARGET % (label, param.target))

    def _validate_type(self, label: str, type_name: str | None) -> None:
        if type_name is not None and type_name not in self._definition.resources:
            self.errors.append(UNKNOWN_TYPE % (label, type_name))

    def __iter__(self) -> Iterator[str]:
        return iter(self.errors)


def validate_definition(document: Mapping[str, Any]) -> list[str]:
    """Return lint findings for a definition document (empty when clean)."""
    return DefinitionValidator(document).errors
