"""Shared test fixtures."""

import asyncio

import pytest


class FakeClock:
    """Controllable monotonic clock whose sleep() just moves time forward.

    Hey future me - the limiter and the pipeline get clock/sleep injected, so
    tests never really wait. sleep() still yields to the event loop once so
    other tasks get to run like they would during a real sleep.
    """

    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Fresh fake clock at t=0."""
    return FakeClock()
