"""
Builder.

Constructs resource objects for a target ResourceType from identifier
sources. Built resources share the client of the calling resource.

Plural fan-out:
    If any source is plural the Builder returns a list. The number of
    resources is the longest plural value; resource ``i`` takes element
    ``i`` of every plural source and the same value of every singular
    source. A plural source that resolves to nothing, or to a value that is
    not a list, yields an empty list.

Data:
    With a ``load_path`` the built resources also receive their data from
    the response, so no separate load call is needed. A plural load path
    fans out together with the identifiers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from resourcekit.errors import DefinitionError
from resourcekit.sources import BuilderSource, SourceType

if TYPE_CHECKING:
    from resourcekit.operations import InvocationContext
    from resourcekit.resource import Resource, ResourceType

logger = logging.getLogger(__name__)

_DATA = "data"


class Builder:
    """
    Resolves identifier sources into one or more resources.

    Sources need not cover every identifier of the target type: a single
    uncovered identifier is filled from the caller's argument. Leaving more
    than one identifier uncovered is a DefinitionError.

    Example:
        builder = Builder(
            object_type,
            [BuilderSource.build("identifier", "name", "bucket_name")],
        )
        builder.requires_argument  # True, 'key' comes from the caller
        obj = builder.build(InvocationContext(resource=bucket, argument="photo.jpg"))
    """

    def __init__(
        self,
        resource_type: ResourceType | None,
        sources: Sequence[BuilderSource] = (),
        *,
        load_path: str | None = None,
    ):
        if resource_type is None:
            raise DefinitionError("missing required option 'resource_type'")

        self.resource_type = resource_type
        self.load_path = load_path
        self.sources = self._complete_sources(resource_type, list(sources))
        self.data_source = (
            BuilderSource.build(SourceType.RESPONSE_PATH, load_path, _DATA) if load_path else None
        )
        self.plural = any(source.plural for source in self._all_sources())

    @staticmethod
    def _complete_sources(
        resource_type: ResourceType, sources: list[BuilderSource]
    ) -> list[BuilderSource]:
        declared = resource_type.identifiers
        targets = [source.target for source in sources]

        unknown = [target for target in targets if target not in declared]
        if unknown:
            raise DefinitionError(
                f"{resource_type.name} has no identifier(s) {unknown}; declared: {list(declared)}"
            )

        missing = [name for name in declared if name not in targets]
        if len(missing) > 1:
            raise DefinitionError(
                f"ambiguous builder for {resource_type.name}: identifiers {missing} "
                "have no source"
            )
        return sources + [BuilderSource.argument(name) for name in missing]

    def _all_sources(self) -> list[BuilderSource]:
        if self.data_source is None:
            return list(self.sources)
        return [*self.sources, self.data_source]

    @property
    def requires_argument(self) -> bool:
        """True if the caller must pass an argument to build."""
        return bool(self.sources) and self.sources[-1].source_type is SourceType.ARGUMENT

    @property
    def reads_response(self) -> bool:
        return any(source.source_type.reads_response for source in self._all_sources())

    def build(self, context: InvocationContext) -> Resource | list[Resource]:
        """Build one resource, or a list if the builder is plural."""
        values = {source.target: source.extract(context) for source in self._all_sources()}
        if self.plural:
            return self._build_plural(values, context)
        return self._build_one(values, context)

    def _build_plural(self, values: dict[str, Any], context: InvocationContext) -> list[Resource]:
        plural_targets = [source.target for source in self._all_sources() if source.plural]
        lengths = [
            len(values[target]) if isinstance(values[target], list) else 0
            for target in plural_targets
        ]
        if not lengths or min(lengths) == 0:
            return []

        resources = []
        for n in range(max(lengths)):
            row = {}
            for target, value in values.items():
                if target in plural_targets:
                    row[target] = value[n] if n < len(value) else None
                else:
                    row[target] = value
            resources.append(self._build_one(row, context))

        logger.debug(f"[builder] Built {len(resources)} {self.resource_type.name} resource(s)")
        return resources

    def _build_one(self, values: dict[str, Any], context: InvocationContext) -> Resource:
        identifiers = {name: value for name, value in values.items() if name != _DATA}
        resource = self.resource_type(client=context.resource.client, **identifiers)
        if _DATA in values:
            resource.data = values[_DATA]
        return resource

    def __repr__(self) -> str:
        return (
            f"Builder({self.resource_type.name}, "
            f"sources={[s.target for s in self.sources]}, plural={self.plural})"
        )
