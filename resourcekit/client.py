"""
API Client Collaborator.

Resources never talk to the network themselves. Every operation ends in a
call against an API client that satisfies the ApiClient protocol:

    client.call("get_user", {"UserName": "jane"}) -> ClientResponse
    client.paginate("list_users", {}) -> Iterable[ClientResponse]

A ClientResponse carries the decoded payload and the exact parameters that
were sent, so identifiers the API only echoes can be recovered from the
request side.

HttpApiClient is a small reference implementation over httpx. Any object
with the same two methods works (an SDK wrapper, a test double).

Usage:
    client = HttpApiClient(
        base_url="https://api.example.com",
        routes={
            "get_user": Route("GET", "/users/{UserName}"),
            "list_users": Route(
                "GET",
                "/users",
                pagination=Pagination(input_token="Marker", output_token="NextMarker"),
            ),
        },
        api_key="...",
    )

    resp = client.call("get_user", {"UserName": "jane"})
    for page in client.paginate("list_users", {}):
        ...
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

from resourcekit import paths
from resourcekit.config import ResourceSettings, get_settings
from resourcekit.errors import ClientError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


# =============================================================================
# Protocol
# =============================================================================


@dataclass(frozen=True, slots=True)
class ClientResponse:
    """
    One API response.

    Attributes:
        data: Decoded payload (navigable by path queries)
        params: The parameter structure that produced this response
    """

    data: Any
    params: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class ApiClient(Protocol):
    """Call surface consumed by Request."""

    def call(self, method_name: str, params: dict[str, Any]) -> ClientResponse:
        """Issue one call and return its response."""
        ...

    def paginate(self, method_name: str, params: dict[str, Any]) -> Iterable[ClientResponse]:
        """Issue a paginated call, yielding one response per page."""
        ...


# =============================================================================
# HTTP Implementation
# =============================================================================


@dataclass(frozen=True, slots=True)
class Pagination:
    """
    Token-cursor pagination.

    Attributes:
        input_token: Request parameter that carries the cursor
        output_token: Path in the response payload holding the next cursor
    """

    input_token: str
    output_token: str


@dataclass(frozen=True, slots=True)
class Route:
    """HTTP binding for one client method."""

    method: str
    path: str
    pagination: Pagination | None = None

    @property
    def sends_body(self) -> bool:
        return self.method.upper() not in ("GET", "DELETE", "HEAD", "OPTIONS")


class HttpApiClient:
    """
    ApiClient over httpx.

    Parameters named by ``{Placeholder}`` segments of a route path are
    substituted into the URL. The remaining parameters become the query
    string for GET/DELETE/HEAD and the JSON body otherwise.

    Lifecycle:
        Pass ``http_client`` to share a connection pool (caller closes it).
        Otherwise the client owns one and ``close()`` releases it; the
        client is also a context manager.
    """

    def __init__(
        self,
        base_url: str,
        routes: Mapping[str, Route],
        *,
        api_key: str | None = None,
        default_headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL
            routes: snake_case method name -> Route
            api_key: Bearer token sent on every request
            default_headers: Headers to include in all requests
            timeout: Request timeout in seconds
            http_client: Optional shared httpx.Client
        """
        self._base_url = base_url.rstrip("/")
        self._routes = dict(routes)
        self._api_key = api_key
        self._default_headers = default_headers or {}
        self._timeout = timeout
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        routes: Mapping[str, Route],
        settings: ResourceSettings | None = None,
        **kwargs: Any,
    ) -> HttpApiClient:
        """Build a client from ResourceSettings (environment by default)."""
        settings = settings or get_settings()
        if not settings.base_url:
            raise ValueError("base_url required (set RESOURCEKIT_BASE_URL)")
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        return cls(
            settings.base_url,
            routes,
            api_key=api_key,
            timeout=settings.timeout,
            **kwargs,
        )

    @property
    def method_names(self) -> list[str]:
        return list(self._routes)

    def call(self, method_name: str, params: dict[str, Any]) -> ClientResponse:
        route = self._route(method_name)
        return self._send(method_name, route, params)

    def paginate(self, method_name: str, params: dict[str, Any]) -> Iterator[ClientResponse]:
        """
        Yield responses page by page.

        Each page is requested only when the consumer asks for it. Routes
        without pagination yield a single response.
        """
        route = self._route(method_name)
        page_params = dict(params)
        page = 0

        while True:
            response = self._send(method_name, route, page_params)
            page += 1
            yield response

            if route.pagination is None:
                return

            token = paths.search(route.pagination.output_token, response.data)
            if not token:
                logger.debug(f"[http_client:{method_name}] Last page reached | pages={page}")
                return
            page_params = {**page_params, route.pagination.input_token: token}

    def close(self) -> None:
        """Close the owned httpx client (no-op for a shared one)."""
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> HttpApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _route(self, method_name: str) -> Route:
        try:
            return self._routes[method_name]
        except KeyError:
            raise AttributeError(
                f"client has no method '{method_name}'. Available: {self.method_names}"
            ) from None

    def _send(self, method_name: str, route: Route, params: dict[str, Any]) -> ClientResponse:
        url, remaining = self._build_url(route, params)
        method = route.method.upper()
        headers = {**self._default_headers}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        logger.debug(f"[http_client:{method_name}] {method} {url} params={list(remaining)}")

        response = self._http.request(
            method,
            url,
            params=None if route.sends_body or not remaining else remaining,
            json=remaining if route.sends_body and remaining else None,
            headers=headers,
        )

        if response.status_code >= 400:
            body = response.text[:500]
            logger.warning(f"[http_client:{method_name}] Error {response.status_code}: {body}")
            raise ClientError(
                f"API error {response.status_code}: {body}",
                method_name=method_name,
                status_code=response.status_code,
                response_body=body,
            )

        data = response.json() if response.content else None
        return ClientResponse(data=data, params=params)

    def _build_url(self, route: Route, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        remaining = dict(params)

        def substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in remaining:
                raise ClientError(f"missing path parameter '{name}' for {route.path}")
            return str(remaining.pop(name))

        path = _PLACEHOLDER.sub(substitute, route.path)
        return f"{self._base_url}{path}", remaining

    def __repr__(self) -> str:
        return f"HttpApiClient(base_url={self._base_url!r}, routes={len(self._routes)})"
