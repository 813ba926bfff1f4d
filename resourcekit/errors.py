"""
Exceptions for resourcekit.

Three families of failure exist:

- Definition errors: raised while compiling a definition document or
  wiring internal components. Fatal and never retried.
- Caller errors: raised when calling code constructs a resource or invokes
  an operation incorrectly (missing identifiers, unknown operations,
  loading a resource type that cannot be loaded).
- Client errors: raised by the bundled HTTP client. Errors raised by any
  other API client propagate to the caller unchanged.
"""

from __future__ import annotations


class ResourceError(Exception):
    """Base exception for resourcekit errors."""

    pass


class DefinitionError(ResourceError):
    """Raised when a definition or internal component is malformed."""

    pass


class IdentifierError(ResourceError, ValueError):
    """Raised when a resource is constructed with bad identifiers."""

    pass


class MissingArgumentError(ResourceError, TypeError):
    """Raised when an operation needs a caller argument that was not given."""

    pass


class OperationNotSupportedError(ResourceError, NotImplementedError):
    """Raised when a resource type has no rule for the requested behavior."""

    pass


class UnknownOperationError(ResourceError, AttributeError):
    """Raised when an operation name is not attached to a resource type."""

    def __init__(self, name: str, resource_name: str | None = None):
        if resource_name:
            message = f"unknown operation '{name}' for {resource_name}"
        else:
            message = f"unknown operation '{name}'"
        super().__init__(message)
        self.name = name
        self.resource_name = resource_name


class UnknownServiceError(ResourceError, KeyError):
    """Raised when no definition is registered for a service name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"no resource definition registered for service '{self.name}'"


class ClientError(ResourceError):
    """Raised by HttpApiClient when the API answers with an error status."""

    def __init__(
        self,
        message: str,
        *,
        method_name: str | None = None,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.method_name = method_name
        self.status_code = status_code
        self.response_body = response_body

    def __str__(self) -> str:
        parts = [str(self.args[0])]
        if self.method_name:
            parts.insert(0, f"[{self.method_name}]")
        if self.status_code:
            parts.append(f"(status={self.status_code})")
        return " ".join(parts)
