"""Bounded fixed-interval polling."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class PollResult(Generic[T]):
    """Outcome of a poll: the last observed value and whether it was final."""

    value: T
    done: bool
    attempts: int


async def poll(
    initial: T,
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    max_attempts: int,
    interval: float,
    sleep: Sleep = asyncio.sleep,
) -> PollResult[T]:
    """
    Poll ``fetch`` until ``is_done`` holds or ``max_attempts`` polls were made.

    ``initial`` is the state already known before polling; if it is final no
    request is made. Each poll is preceded by ``sleep(interval)``. Exceptions
    raised by ``fetch`` or ``is_done`` propagate immediately.
    """
    value = initial
    if is_done(value):
        return PollResult(value=value, done=True, attempts=0)

    for attempt in range(1, max_attempts + 1):
        await sleep(interval)
        value = await fetch()
        if is_done(value):
            return PollResult(value=value, done=True, attempts=attempt)

    return PollResult(value=value, done=False, attempts=max_attempts)
