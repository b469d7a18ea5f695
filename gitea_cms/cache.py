"""
Content-addressed read cache.

File reads and file metadata are cached by blob sha. The backend only knows the
key and how to fetch on a miss; storage is up to the ``ContentCache``
implementation the host supplies.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class ContentCache(Protocol):
    """Storage used to cache file reads."""

    async def get_item(self, key: str) -> Any | None: ...

    async def set_item(self, key: str, value: Any) -> None: ...


class InMemoryCache:
    """Process-local ``ContentCache``."""

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    async def get_item(self, key: str) -> Any | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: Any) -> None:
        self._items[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()


def file_cache_key(sha: str, parse_text: bool) -> str:
    return sha if parse_text else f"{sha}.blob"


def metadata_cache_key(sha: str) -> str:
    return f"gh.{sha}.meta"


async def cached(
    cache: ContentCache,
    key: str | None,
    fetch: Callable[[], Awaitable[T]],
) -> T:
    """
    Return the cached value for ``key`` or fetch and store it.

    Without a key (content not addressed by a sha yet) the value is always
    fetched and never stored.
    """
    if key is not None:
        hit = await cache.get_item(key)
        if hit is not None:
            return hit

    value = await fetch()
    if key is not None:
        await cache.set_item(key, value)
    return value
