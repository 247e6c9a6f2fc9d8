"""Tests for CancellationToken and cancellable_delay."""

import asyncio

from det_eval.scheduling.application.cancellation import (
    CancellationToken,
    cancellable_delay,
)


class TestCancellableDelay:
    async def test_completes_when_not_cancelled(self) -> None:
        assert await cancellable_delay(seconds=0.01, token=CancellationToken()) is True

    async def test_zero_delay_completes(self) -> None:
        assert await cancellable_delay(seconds=0.0, token=CancellationToken()) is True

    async def test_already_cancelled_returns_false(self) -> None:
        token = CancellationToken()
        token.cancel()

        assert await cancellable_delay(seconds=10.0, token=token) is False

    async def test_cancel_wakes_sleeper(self) -> None:
        token = CancellationToken()

        async def cancel_soon() -> None:
            await asyncio.sleep(0.02)
            token.cancel()

        canceller = asyncio.create_task(cancel_soon())
        completed = await asyncio.wait_for(
            cancellable_delay(seconds=30.0, token=token), timeout=2.0
        )
        await canceller

        assert completed is False

    async def test_ticks_report_remaining_seconds(self) -> None:
        ticks: list[float] = []

        await cancellable_delay(
            seconds=0.03,
            token=CancellationToken(),
            on_tick=ticks.append,
            tick_seconds=0.01,
        )

        assert len(ticks) == 3
        assert ticks[0] == 0.03
        assert ticks == sorted(ticks, reverse=True)
