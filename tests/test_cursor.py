"""
Property-based tests for pagination cursors.
"""

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gitea_cms.cursor import Cursor

BASE = "https://gitea.test/api/v1/repos/o/r/repository/tree?path=content&per_page=100"


def all_links(page_count: int) -> dict[str, str]:
    return {
        "first": f"{BASE}&page=1",
        "prev": f"{BASE}&page=1",
        "next": f"{BASE}&page=2",
        "last": f"{BASE}&page={page_count}",
    }


@st.composite
def pages(draw) -> tuple[int, int]:
    page_count = draw(st.integers(min_value=1, max_value=50))
    page = draw(st.integers(min_value=1, max_value=page_count))
    return page, page_count


@given(position=pages())
@settings(max_examples=100)
def test_actions_match_reachable_pages(position: tuple[int, int]) -> None:
    """
    Property 1: Cursor actions only point at existing pages

    prev and first are offered iff page > 1; next and last iff
    page < page_count.
    """
    page, page_count = position
    cursor = Cursor.create(page, page_count, 100, page_count * 100, all_links(page_count))

    assert cursor.has("prev") == (page > 1)
    assert cursor.has("first") == (page > 1)
    assert cursor.has("next") == (page < page_count)
    assert cursor.has("last") == (page < page_count)


@given(position=pages())
@settings(max_examples=50)
def test_actions_require_links(position: tuple[int, int]) -> None:
    """
    Property 2: No link, no action

    A relation missing from the response is never offered.
    """
    page, page_count = position
    cursor = Cursor.create(page, page_count, 100, 0, {})

    assert cursor.actions == frozenset()


def test_request_for_unavailable_action_raises() -> None:
    cursor = Cursor.create(1, 3, 100, 300, all_links(3))

    assert cursor.request_for("next").url.endswith("page=2")
    with pytest.raises(ValueError, match="prev"):
        cursor.request_for("prev")


def test_from_response_reads_paging_headers() -> None:
    link = (
        f'<{BASE}&page=3>; rel="next", <{BASE}&page=1>; rel="prev", '
        f'<{BASE}&page=1>; rel="first", <{BASE}&page=5>; rel="last"'
    )
    response = httpx.Response(
        200,
        headers={
            "X-Page": "2",
            "X-Total-Pages": "5",
            "X-Per-Page": "100",
            "X-Total": "450",
            "Link": link,
        },
    )

    cursor = Cursor.from_response(response)

    assert (cursor.page, cursor.page_count, cursor.page_size, cursor.count) == (2, 5, 100, 450)
    assert cursor.actions == frozenset({"first", "prev", "next", "last"})
    assert cursor.request_for("next").url == f"{BASE}&page=3"


def test_from_response_without_headers() -> None:
    cursor = Cursor.from_response(httpx.Response(404))

    assert cursor.page == 0
    assert cursor.page_count == 0
    assert cursor.actions == frozenset()


def test_malformed_headers_default_to_zero() -> None:
    cursor = Cursor.from_headers({"X-Page": "abc", "X-Total-Pages": "2"}, {})

    assert cursor.page == 0
    assert cursor.page_count == 2
