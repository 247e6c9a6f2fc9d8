"""Cooperative cancellation and cancellable, ticking delays."""

import asyncio
from collections.abc import Callable
from typing import TypeAlias

TickCallback: TypeAlias = Callable[[float], None]


class CancellationToken:
    """A one-way flag that waiting coroutines can observe promptly."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


async def cancellable_delay(
    seconds: float,
    token: CancellationToken,
    on_tick: TickCallback | None = None,
    tick_seconds: float = 1.0,
) -> bool:
    """Sleep for the given seconds unless cancelled first.

    When on_tick is given it is called with the remaining seconds at the
    start of every tick. Returns False if the token was cancelled before the
    delay elapsed, True otherwise.
    """
    remaining = seconds
    while remaining > 0:
        if token.cancelled:
            return False
        if on_tick is not None:
            on_tick(remaining)
        step = min(tick_seconds, remaining)
        try:
            await asyncio.wait_for(token.wait(), timeout=step)
        except TimeoutError:
            remaining -= step
            continue
        return False
    return not token.cancelled
