"""
Pagination cursors.

A cursor is derived from the paging headers of a list response and offers only
those navigation actions whose target page actually exists.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

import httpx

from gitea_cms.request import ApiRequest

PAGE_HEADER = "X-Page"
TOTAL_PAGES_HEADER = "X-Total-Pages"
PER_PAGE_HEADER = "X-Per-Page"
TOTAL_HEADER = "X-Total"

ACTIONS = ("first", "prev", "next", "last")


@dataclass(frozen=True)
class Cursor:
    """Pagination handle for a listing."""

    page: int
    page_count: int
    page_size: int
    count: int
    links: Mapping[str, ApiRequest] = field(default_factory=dict)
    actions: frozenset[str] = frozenset()

    @classmethod
    def create(
        cls,
        page: int,
        page_count: int,
        page_size: int,
        count: int,
        links: Mapping[str, str],
    ) -> "Cursor":
        """
        Build a cursor from paging numbers and link-relation URLs.

        An action is offered only when its relation is present and reachable:
        ``prev``/``first`` need ``page > 1``, ``next``/``last`` need
        ``page < page_count``.
        """
        requests = {rel: ApiRequest.from_url(url) for rel, url in links.items()}
        actions = frozenset(
            rel
            for rel in requests
            if (rel in ("prev", "first") and page > 1)
            or (rel in ("next", "last") and page < page_count)
        )
        return cls(
            page=page,
            page_count=page_count,
            page_size=page_size,
            count=count,
            links=requests,
            actions=actions,
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "Cursor":
        """Derive a cursor from a response's paging and ``Link`` headers."""
        links = {
            rel: link["url"]
            for rel, link in response.links.items()
            if rel in ACTIONS and link.get("url")
        }
        return cls.from_headers(response.headers, links)

    @classmethod
    def from_headers(
        cls, headers: Mapping[str, str], links: Mapping[str, str]
    ) -> "Cursor":
        return cls.create(
            page=_int_header(headers, PAGE_HEADER),
            page_count=_int_header(headers, TOTAL_PAGES_HEADER),
            page_size=_int_header(headers, PER_PAGE_HEADER),
            count=_int_header(headers, TOTAL_HEADER),
            links=links,
        )

    def has(self, action: str) -> bool:
        return action in self.actions

    def request_for(self, action: str) -> ApiRequest:
        """
        Return the request bound to ``action``.

        Raises:
            ValueError: If the action is not available on this cursor
        """
        if action not in self.actions:
            raise ValueError(
                f"Cursor action '{action}' is not available (actions: {sorted(self.actions)})"
            )
        return self.links[action]


def _int_header(headers: Mapping[str, str], name: str) -> int:
    value = headers.get(name)
    if value is None:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0
