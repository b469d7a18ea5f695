"""
Request construction.

An ``ApiRequest`` describes a call against the hosting service independently
of where the service lives or how the caller is authenticated. The
``RequestBuilder`` turns it into a fully addressed ``httpx.Request``.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True)
class ApiRequest:
    """Abstract description of a request to the hosting service."""

    url: str
    method: str = "GET"
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    cache: str | None = None

    @classmethod
    def from_url(cls, url: str) -> "ApiRequest":
        """Create a GET request for a URL that may already carry its query string."""
        return cls(url=url)

    def with_method(self, method: str) -> "ApiRequest":
        return replace(self, method=method.upper())

    def with_params(self, **params: Any) -> "ApiRequest":
        return replace(self, params={**self.params, **params})


class RequestBuilder:
    """
    Builds ``httpx.Request`` objects from ``ApiRequest`` descriptions.

    Handles:
    - Prepending the API root to relative URLs
    - Injecting the bearer token when one is configured
    - Applying ``no-cache`` unless the caller chose a cache policy
    """

    def __init__(self, api_root: str, token: str | None = None) -> None:
        """
        Initialize the builder.

        Args:
            api_root: API root URL (e.g., "https://gitea.com/api/v1")
            token: Bearer token used for the Authorization header (optional)
        """
        self.api_root = api_root.rstrip("/")
        self.token = token

    def resolve_url(self, url: str) -> str:
        """Prepend the API root unless the URL is already absolute."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.api_root}/{url.lstrip('/')}"

    def headers_for(self, req: ApiRequest) -> dict[str, str]:
        headers = dict(req.headers)
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        headers["Cache-Control"] = req.cache or "no-cache"
        if req.body is not None and not isinstance(req.body, (bytes, str)):
            headers.setdefault("Content-Type", JSON_CONTENT_TYPE)
        return headers

    def build(self, client: httpx.AsyncClient, req: ApiRequest) -> httpx.Request:
        """
        Build a request ready to be sent by ``client``.

        Query parameters given on ``req`` are merged with any already present
        in the URL, which is how link-relation URLs carry their paging state.
        """
        content: bytes | str | None
        if req.body is None or isinstance(req.body, (bytes, str)):
            content = req.body
        else:
            content = json.dumps(req.body)

        url = httpx.URL(self.resolve_url(req.url))
        if req.params:
            url = url.copy_merge_params(_encode_params(req.params))

        return client.build_request(
            req.method,
            url,
            headers=self.headers_for(req),
            content=content,
        )


def _encode_params(params: dict[str, Any]) -> dict[str, str]:
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded
