"""
Definition Document Schema.

Pydantic models for the JSON document a service is compiled from. The
document is the only configuration of compiled behavior.

Shape:
    {
        "service": {
            "actions": {...},
            "hasMany": {...}
        },
        "resources": {
            "User": {
                "identifiers": [{"name": "Name"}],
                "shape": "User",
                "load": {
                    "request": {
                        "operation": "GetUser",
                        "params": [
                            {"target": "UserName", "sourceType": "identifier", "source": "Name"}
                        ]
                    },
                    "path": "User"
                },
                "actions": {
                    "Delete": {
                        "request": {
                            "operation": "DeleteUser",
                            "params": [
                                {"target": "UserName", "sourceType": "identifier", "source": "Name"}
                            ]
                        }
                    }
                },
                "hasMany": {
                    "AccessKeys": {
                        "type": "AccessKey",
                        "enumerate": {
                            "request": {...},
                            "resource": {
                                "identifiers": [
                                    {"target": "UserName", "sourceType": "identifier", "source": "Name"},
                                    {"target": "Id", "sourceType": "responsePath",
                                     "source": "AccessKeyMetadata[].AccessKeyId"}
                                ]
                            }
                        },
                        "create": {"request": {...}, "resource": {...}},
                        "resource": {
                            "identifiers": [
                                {"target": "UserName", "sourceType": "identifier", "source": "Name"}
                            ]
                        }
                    }
                },
                "hasSome": {...},
                "hasOne": {...},
                "subResources": {
                    "resources": ["UserPolicy"],
                    "identifiers": {"Name": "UserName"}
                }
            }
        }
    }

Keys are CamelCase on the wire; models accept either the alias or the
Python field name.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _DefinitionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


# =============================================================================
# Requests
# =============================================================================


class ParamDefinition(_DefinitionModel):
    """One request parameter projection."""

    target: str = Field(..., description="Target expression, e.g. Filters[0].Values[]")
    source_type: Literal["identifier", "dataMember", "string", "integer", "boolean"] = Field(
        ...,
        alias="sourceType",
    )
    source: str | int | bool = Field(..., description="Identifier, member name or literal")


class RequestDefinition(_DefinitionModel):
    """A client call and its parameter projections."""

    operation: str = Field(..., description="API operation name, e.g. CreateUser")
    params: list[ParamDefinition] = Field(default_factory=list)


# =============================================================================
# Builders
# =============================================================================


class IdentifierSourceDefinition(_DefinitionModel):
    """Where one identifier of a built resource comes from."""

    target: str = Field(..., description="Identifier name on the built resource")
    source_type: Literal["identifier", "dataMember", "requestParameter", "responsePath"] = Field(
        ...,
        alias="sourceType",
    )
    source: str


class ResourceRefDefinition(_DefinitionModel):
    """How to build resources of ``type``."""

    type: str | None = Field(default=None, description="Resource type name")
    identifiers: list[IdentifierSourceDefinition] = Field(default_factory=list)
    path: str | None = Field(default=None, description="Path to resource data in the response")


# =============================================================================
# Rules
# =============================================================================


class LoadDefinition(_DefinitionModel):
    request: RequestDefinition
    path: str = Field(..., description='Path to the data in the response ("$" = all)')


class ActionDefinition(_DefinitionModel):
    """
    An action.

    ``request`` alone returns the raw response; with ``path`` it returns
    the extracted data; with ``resource`` it returns built resources.
    """

    request: RequestDefinition
    path: str | None = None
    resource: ResourceRefDefinition | None = None

    @model_validator(mode="after")
    def _path_or_resource(self) -> ActionDefinition:
        if self.path is not None and self.resource is not None:
            raise ValueError("an action may declare 'path' or 'resource', not both")
        if self.resource is not None and self.resource.type is None:
            raise ValueError("an action resource must declare its 'type'")
        return self


class RequestWithResourceDefinition(_DefinitionModel):
    request: RequestDefinition
    resource: ResourceRefDefinition = Field(default_factory=ResourceRefDefinition)


class HasManyDefinition(_DefinitionModel):
    """A plural association: enumerate, create and look up by key."""

    type: str
    enumerate: RequestWithResourceDefinition | None = None
    create: RequestWithResourceDefinition | None = None
    resource: ResourceRefDefinition | None = None


class AssociationDefinition(_DefinitionModel):
    """An unkeyed reference (hasSome / hasOne)."""

    type: str
    resource: ResourceRefDefinition = Field(default_factory=ResourceRefDefinition)


class SubResourcesDefinition(_DefinitionModel):
    """Child types that share identifiers with their parent."""

    resources: list[str]
    identifiers: dict[str, str] = Field(..., description="Parent identifier -> child identifier")


class ContainerDefinition(_DefinitionModel):
    """Rules shared by the service root and every resource."""

    actions: dict[str, ActionDefinition] = Field(default_factory=dict)
    has_many: dict[str, HasManyDefinition] = Field(default_factory=dict, alias="hasMany")
    has_some: dict[str, AssociationDefinition] = Field(default_factory=dict, alias="hasSome")
    has_one: dict[str, AssociationDefinition] = Field(default_factory=dict, alias="hasOne")


class ResourceDefinition(ContainerDefinition):
    """One named resource type."""

    identifiers: list[str] = Field(default_factory=list)
    shape: str | None = None
    load: LoadDefinition | None = None
    sub_resources: SubResourcesDefinition | None = Field(default=None, alias="subResources")

    @field_validator("identifiers", mode="before")
    @classmethod
    def _identifier_names(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [item["name"] if isinstance(item, dict) and "name" in item else item for item in value]


class ServiceDefinition(_DefinitionModel):
    """A whole definition document."""

    service: ContainerDefinition = Field(default_factory=ContainerDefinition)
    resources: dict[str, ResourceDefinition] = Field(default_factory=dict)
