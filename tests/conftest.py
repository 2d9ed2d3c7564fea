import asyncio
from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Settable replacement for the cache clock."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 4, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class ManualSleep:
    """Sleep replacement that only returns when the test calls tick()."""

    def __init__(self):
        self.delays = []
        self._waiters = []

    async def __call__(self, seconds):
        self.delays.append(seconds)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    @property
    def pending(self):
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def settle(self, rounds=50):
        for _ in range(rounds):
            await asyncio.sleep(0)

    async def tick(self):
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
        await self.settle()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manual_sleep():
    return ManualSleep()
