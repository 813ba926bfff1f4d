"""
Request.

A Request names a client method and the projections that build its
parameters. Nothing is stored between invocations: every call starts from
a deep copy of the caller's extra params and applies each projection in
declaration order.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from resourcekit.errors import DefinitionError
from resourcekit.params import RequestParam

if TYPE_CHECKING:
    from resourcekit.client import ClientResponse
    from resourcekit.operations import InvocationContext

logger = logging.getLogger(__name__)


class Request:
    """A client call bound to its parameter projections."""

    def __init__(self, method_name: str, params: Sequence[RequestParam] = ()):
        if not method_name:
            raise DefinitionError("missing required option 'method_name'")
        self.method_name = method_name
        self.params = tuple(params)

    def build_params(self, context: InvocationContext) -> dict[str, Any]:
        params = copy.deepcopy(dict(context.params or {}))
        for param in self.params:
            param.apply(params, context.resource)
        return params

    def invoke(self, context: InvocationContext) -> ClientResponse:
        """Issue a single call on the calling resource's client."""
        params = self.build_params(context)
        logger.debug(f"[request:{self.method_name}] call params={list(params)}")
        return context.resource.client.call(self.method_name, params)

    def paginate(self, context: InvocationContext) -> Iterable[ClientResponse]:
        """Issue a paginated call; pages are fetched as the result is consumed."""
        params = self.build_params(context)
        logger.debug(f"[request:{self.method_name}] paginate params={list(params)}")
        return context.resource.client.paginate(self.method_name, params)

    def __repr__(self) -> str:
        return f"Request({self.method_name!r}, params={len(self.params)})"
