"""
Service Registry.

Compiling a service is expensive, so each service is compiled at most once
per registry and the compiled ServiceModel is shared by every caller.

Concurrency:
    The first get() of a service compiles it while holding a lock; callers
    arriving during compilation wait and then see the same model. Once a
    model is cached, get() reads it without taking the lock. Compiled
    models are frozen.

Definitions come either from an explicit document passed to register()
or from a loader:
    - FileDefinitionLoader: <directory>/<service>.resources.json
    - MemoryDefinitionLoader: in-memory documents (testing)

Usage:
    registry = ServiceRegistry(loader=FileDefinitionLoader("definitions/"))
    registry.register("iam", client_factory=make_iam_client)

    iam = registry.get("iam")()          # compiled once
    user = iam.user("jane")

    # Process-wide default, configured from RESOURCEKIT_DEFINITIONS_DIR
    model = get_service("iam")
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol

from resourcekit.config import get_settings
from resourcekit.definition import Definition, ServiceModel
from resourcekit.errors import DefinitionError, UnknownServiceError
from resourcekit.validator import validate_definition

logger = logging.getLogger(__name__)


# =============================================================================
# Loaders
# =============================================================================


class DefinitionLoader(Protocol):
    """Finds the raw definition document for a service."""

    def load(self, service_name: str) -> Mapping[str, Any] | None:
        """Return the document, or None if this loader has none."""
        ...

    def service_names(self) -> list[str]:
        ...


class FileDefinitionLoader:
    """
    Loads ``<service>.resources.json`` documents from a directory.

    Directory layout:
        definitions/
        ├── iam.resources.json
        └── s3.resources.json
    """

    SUFFIX = ".resources.json"

    def __init__(self, base_dir: str | Path):
        self._base_dir = Path(base_dir)

    def path_for(self, service_name: str) -> Path:
        return self._base_dir / f"{service_name}{self.SUFFIX}"

    def load(self, service_name: str) -> Mapping[str, Any] | None:
        path = self.path_for(service_name)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise DefinitionError(f"invalid JSON in {path}: {e}") from e
        logger.debug(f"[file_loader] Loaded {path}")
        return document

    def service_names(self) -> list[str]:
        if not self._base_dir.is_dir():
            return []
        return sorted(
            path.name[: -len(self.SUFFIX)] for path in self._base_dir.glob(f"*{self.SUFFIX}")
        )


class MemoryDefinitionLoader:
    """Holds documents in memory."""

    def __init__(self, documents: Mapping[str, Mapping[str, Any]] | None = None):
        self._documents: dict[str, Mapping[str, Any]] = dict(documents or {})

    def add(self, service_name: str, document: Mapping[str, Any]) -> None:
        self._documents[service_name] = document

    def load(self, service_name: str) -> Mapping[str, Any] | None:
        return self._documents.get(service_name)

    def service_names(self) -> list[str]:
        return sorted(self._documents)


# =============================================================================
# Registry
# =============================================================================


class ServiceRegistry:
    """Process-wide cache of compiled services."""

    def __init__(self, loader: DefinitionLoader | None = None):
        self._loader = loader
        self._lock = threading.Lock()
        self._services: dict[str, ServiceModel] = {}
        self._documents: dict[str, Mapping[str, Any]] = {}
        self._client_factories: dict[str, Callable[[], Any]] = {}

    def register(
        self,
        name: str,
        definition: Mapping[str, Any] | None = None,
        *,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        """
        Register a service (compiled lazily on first get()).

        Args:
            name: Service name
            definition: Raw document; omitted to use the loader
            client_factory: Default client constructor for its resources

        Raises:
            DefinitionError: If the service was already compiled
        """
        with self._lock:
            if name in self._services:
                raise DefinitionError(f"service '{name}' is already compiled")
            if definition is not None:
                self._documents[name] = definition
            if client_factory is not None:
                self._client_factories[name] = client_factory
        logger.info(f"[registry] Registered service: {name}")

    def get(self, name: str) -> ServiceModel:
        """
        Get the compiled model for a service, compiling it on first use.

        Raises:
            UnknownServiceError: If no definition is known for the name
            DefinitionError: If the definition does not compile
        """
        model = self._services.get(name)
        if model is not None:
            return model

        with self._lock:
            model = self._services.get(name)
            if model is None:
                model = self._compile(name)
                self._services[name] = model
        return model

    def is_compiled(self, name: str) -> bool:
        return name in self._services

    def service_names(self) -> list[str]:
        names = set(self._documents) | set(self._services)
        if self._loader is not None:
            names.update(self._loader.service_names())
        return sorted(names)

    def _compile(self, name: str) -> ServiceModel:
        document = self._documents.get(name)
        if document is None and self._loader is not None:
            document = self._loader.load(name)
        if document is None:
            raise UnknownServiceError(name)

        for finding in validate_definition(document):
            logger.warning(f"[registry] {name}: {finding}")

        logger.info(f"[registry] Compiling service: {name}")
        return Definition(document).define_service(name, self._client_factories.get(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.service_names()

    def __repr__(self) -> str:
        return f"ServiceRegistry(services={self.service_names()}, compiled={len(self._services)})"


_default_registry: ServiceRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> ServiceRegistry:
    """
    Get the process-wide registry.

    Created on first call with a FileDefinitionLoader over
    settings.definitions_dir, when set.
    """
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                settings = get_settings()
                loader = (
                    FileDefinitionLoader(settings.definitions_dir)
                    if settings.definitions_dir
                    else None
                )
                _default_registry = ServiceRegistry(loader=loader)
    return _default_registry


def get_service(name: str) -> ServiceModel:
    """Shortcut for default_registry().get(name)."""
    return default_registry().get(name)
