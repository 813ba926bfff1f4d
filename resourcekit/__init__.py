"""
resourcekit - compile declarative resource definitions into live API objects.

A definition document names resource types, their identifiers, and the
API calls that load, create, enumerate, act on and reference them.
resourcekit compiles it once into a graph of resource types whose
instances issue calls through a generic API client and turn responses
back into resources.

Quick Start:
    >>> from resourcekit import Definition
    >>>
    >>> model = Definition(document).define_service("iam", client_factory=make_client)
    >>> iam = model()
    >>> user = iam.create_user(UserName="jane")
    >>> for key in user.access_keys():
    ...     print(key.id)

Components:
    - Definition / ServiceModel: compile a document into resource types
    - ResourceType / Resource: compiled templates and their instances
    - Operation: load, action, association and reference behavior
    - Request / RequestParam: client calls and parameter projections
    - Builder / BuilderSource: identifiers -> resource objects
    - ServiceRegistry: process-wide cache of compiled services
    - HttpApiClient: reference API client over httpx
"""

__version__ = "0.1.0"
__license__ = "MIT"

from resourcekit.builder import Builder
from resourcekit.client import ApiClient, ClientResponse, HttpApiClient, Pagination, Route
from resourcekit.config import ResourceSettings, get_settings
from resourcekit.definition import Definition, ServiceModel
from resourcekit.errors import (
    ClientError,
    DefinitionError,
    IdentifierError,
    MissingArgumentError,
    OperationNotSupportedError,
    ResourceError,
    UnknownOperationError,
    UnknownServiceError,
)
from resourcekit.operations import InvocationContext, Operation, OperationKind
from resourcekit.params import ParamSourceType, ParamTarget, RequestParam
from resourcekit.registry import (
    FileDefinitionLoader,
    MemoryDefinitionLoader,
    ServiceRegistry,
    default_registry,
    get_service,
)
from resourcekit.request import Request
from resourcekit.resource import Resource, ResourceType
from resourcekit.sources import BuilderSource, SourceType
from resourcekit.validator import DefinitionValidator, validate_definition

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Compilation
    "Definition",
    "ServiceModel",
    "DefinitionValidator",
    "validate_definition",
    # Runtime
    "Resource",
    "ResourceType",
    "Operation",
    "OperationKind",
    "InvocationContext",
    "Request",
    "RequestParam",
    "ParamTarget",
    "ParamSourceType",
    "Builder",
    "BuilderSource",
    "SourceType",
    # Registry
    "ServiceRegistry",
    "FileDefinitionLoader",
    "MemoryDefinitionLoader",
    "default_registry",
    "get_service",
    # Client
    "ApiClient",
    "ClientResponse",
    "HttpApiClient",
    "Pagination",
    "Route",
    # Settings
    "ResourceSettings",
    "get_settings",
    # Errors
    "ResourceError",
    "DefinitionError",
    "IdentifierError",
    "MissingArgumentError",
    "OperationNotSupportedError",
    "UnknownOperationError",
    "UnknownServiceError",
    "ClientError",
]
