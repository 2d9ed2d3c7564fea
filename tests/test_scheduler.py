import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from hkoweather import (
    AutomationScheduler,
    DataType,
    FetchExhaustedError,
    PeriodicTask,
    UpstreamHTTPError,
)

DATA_TYPES = (DataType.CURRENT_WEATHER, DataType.LOCAL_FORECAST, DataType.WARNING_SUMMARY)


def make_scheduler(refresh, manual_sleep, **kwargs):
    kwargs.setdefault("data_types", DATA_TYPES)
    return AutomationScheduler(refresh, sleep=manual_sleep, **kwargs)


class TestPeriodicTask:
    @pytest.mark.asyncio
    async def test_runs_immediately_then_every_interval(self, manual_sleep):
        func = AsyncMock()
        task = PeriodicTask("test", func, timedelta(seconds=30), sleep=manual_sleep)

        task.start()
        await manual_sleep.settle()
        assert func.await_count == 1
        assert manual_sleep.delays == [30.0]

        await manual_sleep.tick()
        await manual_sleep.tick()
        assert func.await_count == 3

        assert task.cancel() is True
        await manual_sleep.settle()
        assert not task.running

    @pytest.mark.asyncio
    async def test_run_immediately_false_waits_first(self, manual_sleep):
        func = AsyncMock()
        task = PeriodicTask(
            "test", func, timedelta(seconds=5), run_immediately=False, sleep=manual_sleep
        )

        task.start()
        await manual_sleep.settle()
        assert func.await_count == 0

        await manual_sleep.tick()
        assert func.await_count == 1
        task.cancel()

    @pytest.mark.asyncio
    async def test_start_twice_raises(self, manual_sleep):
        task = PeriodicTask("test", AsyncMock(), timedelta(seconds=1), sleep=manual_sleep)
        task.start()
        with pytest.raises(RuntimeError):
            task.start()
        task.cancel()

    @pytest.mark.asyncio
    async def test_cancel_without_start(self):
        task = PeriodicTask("test", AsyncMock(), timedelta(seconds=1))
        assert task.cancel() is False

    @pytest.mark.asyncio
    async def test_errors_do_not_stop_schedule(self, manual_sleep, caplog):
        func = AsyncMock(side_effect=RuntimeError("boom"))
        task = PeriodicTask("flaky", func, timedelta(seconds=1), sleep=manual_sleep)

        with caplog.at_level("ERROR", logger="hkoweather"):
            task.start()
            await manual_sleep.settle()
            await manual_sleep.tick()

        assert func.await_count == 2
        assert task.running
        assert any("Task flaky error" in r.getMessage() for r in caplog.records)
        task.cancel()


class TestAutomationScheduler:
    @pytest.mark.asyncio
    async def test_start_runs_pass_immediately(self, manual_sleep):
        refresh = AsyncMock()
        scheduler = make_scheduler(refresh, manual_sleep)

        assert scheduler.start() is True
        await manual_sleep.settle()

        assert [c.args[0] for c in refresh.await_args_list] == list(DATA_TYPES)
        assert manual_sleep.delays == [300.0]
        scheduler.stop()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_schedule(self, manual_sleep):
        refresh = AsyncMock()
        scheduler = make_scheduler(refresh, manual_sleep)

        assert scheduler.start() is True
        assert scheduler.start() is False
        await manual_sleep.settle()
        assert refresh.await_count == 3

        for _ in range(3):
            await manual_sleep.tick()

        assert refresh.await_count == 12
        assert manual_sleep.delays == [300.0] * 4
        assert manual_sleep.pending == 1
        scheduler.stop()

    @pytest.mark.asyncio
    async def test_disabled_never_starts(self, manual_sleep, caplog):
        refresh = AsyncMock()
        scheduler = make_scheduler(refresh, manual_sleep, enabled=False)

        with caplog.at_level("INFO", logger="hkoweather"):
            assert scheduler.start() is False
        await manual_sleep.settle()

        assert not scheduler.running
        refresh.assert_not_awaited()
        assert any("disabled" in r.getMessage() for r in caplog.records)

    def test_stop_when_never_started(self):
        scheduler = AutomationScheduler(AsyncMock())
        assert scheduler.stop() is False
        assert scheduler.stop() is False

    @pytest.mark.asyncio
    async def test_stop_then_restart(self, manual_sleep):
        refresh = AsyncMock()
        scheduler = make_scheduler(refresh, manual_sleep)

        scheduler.start()
        await manual_sleep.settle()
        assert scheduler.stop() is True
        assert scheduler.stop() is False
        await manual_sleep.settle()
        assert not scheduler.running

        assert scheduler.start() is True
        await manual_sleep.settle()
        assert refresh.await_count == 6
        scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_abandons_pass_in_progress(self, manual_sleep):
        gate = asyncio.Event()
        refreshed = []

        async def refresh(data_type):
            if data_type is DataType.LOCAL_FORECAST:
                await gate.wait()
            refreshed.append(data_type)

        scheduler = make_scheduler(refresh, manual_sleep)
        scheduler.start()
        await manual_sleep.settle()
        assert refreshed == [DataType.CURRENT_WEATHER]

        assert scheduler.stop() is True
        gate.set()
        await manual_sleep.settle()

        assert refreshed == [DataType.CURRENT_WEATHER]
        assert manual_sleep.delays == []
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_schedule_survives_failing_passes(self, manual_sleep):
        refresh = AsyncMock(side_effect=UpstreamHTTPError(503, "Service Unavailable"))
        scheduler = make_scheduler(refresh, manual_sleep)

        scheduler.start()
        await manual_sleep.settle()
        await manual_sleep.tick()

        assert refresh.await_count == 6
        assert scheduler.running
        scheduler.stop()

    def test_interval_and_data_types_defaults(self):
        scheduler = AutomationScheduler(AsyncMock())
        assert scheduler.interval == timedelta(minutes=5)
        assert scheduler.data_types == DATA_TYPES
        assert scheduler.enabled is True


class TestRunPass:
    @pytest.mark.asyncio
    async def test_failure_isolation(self, caplog):
        def refresh(data_type):
            if data_type is DataType.CURRENT_WEATHER:
                raise FetchExhaustedError("rhrread", "tc", 3, UpstreamHTTPError(500, "x"))
            if data_type is DataType.LOCAL_FORECAST:
                raise KeyError("unexpected")
            return {}

        scheduler = AutomationScheduler(AsyncMock(side_effect=refresh), data_types=DATA_TYPES)

        with caplog.at_level("DEBUG", logger="hkoweather"):
            results = await scheduler.run_pass()

        assert results == {
            DataType.CURRENT_WEATHER: False,
            DataType.LOCAL_FORECAST: False,
            DataType.WARNING_SUMMARY: True,
        }
        messages = [r.getMessage() for r in caplog.records]
        assert any("Automated fetch failed for rhrread" in m for m in messages)
        assert any("Automated fetch crashed for flw" in m for m in messages)
        assert any("Automated fetch completed for warnsum" in m for m in messages)

    @pytest.mark.asyncio
    async def test_empty_data_types(self):
        refresh = AsyncMock()
        scheduler = AutomationScheduler(refresh, data_types=())
        assert await scheduler.run_pass() == {}
        refresh.assert_not_awaited()
