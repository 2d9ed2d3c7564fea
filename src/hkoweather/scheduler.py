"""Background refresh of frequently used data types.

PeriodicTask runs an async callable once immediately and then again after
every interval until cancelled. The interval is measured from the end of
one run to the start of the next, so runs never overlap.

AutomationScheduler builds on it: each pass refreshes the configured data
types one after another. A failing data type is logged and skipped; it
neither aborts the pass nor stops the schedule. Only stop() ends it.

Stopping cancels the task, abandoning a pass that is in progress.

Example:
    >>> scheduler = AutomationScheduler(
    ...     service.fetch_weather_data,
    ...     data_types=[DataType.CURRENT_WEATHER],
    ...     interval=timedelta(minutes=5),
    ... )
    >>> scheduler.start()   # inside a running event loop
    True
    >>> scheduler.stop()
    True
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, Iterable, Optional

from .exceptions import HKOWeatherError
from .retry import Sleep
from .types import DEFAULT_AUTOMATION_DATA_TYPES, DEFAULT_AUTOMATION_INTERVAL, DataType

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Cancellable repeating asyncio task.

    Exceptions raised by ``func`` are logged and the schedule continues.

    Args:
        name: Name used for the asyncio task and in log messages.
        func: Async callable invoked on every run.
        interval: Pause between the end of a run and the next one.
        run_immediately: Run once right after start() before the first
            pause. Defaults to True.
        sleep: Awaitable sleep. Defaults to asyncio.sleep.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        interval: timedelta,
        *,
        run_immediately: bool = True,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self._func = func
        self._interval = interval
        self._run_immediately = run_immediately
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the task on the running event loop.

        Raises:
            RuntimeError: If already started, or if no event loop is running.
        """
        if self.running:
            raise RuntimeError(f"Task {self.name} is already running")
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=self.name
        )

    def cancel(self) -> bool:
        """Cancel the task.

        Returns:
            True if a running task was cancelled, False if there was none.
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _run(self) -> None:
        if self._run_immediately:
            await self._invoke()
        while True:
            await self._sleep(self._interval.total_seconds())
            await self._invoke()

    async def _invoke(self) -> None:
        try:
            await self._func()
        except Exception:
            logger.exception(f"Task {self.name} error")


class AutomationScheduler:
    """Periodically refresh a fixed list of data types.

    Args:
        refresh: Async callable refreshing one data type, typically
            WeatherService.fetch_weather_data.
        data_types: Data types refreshed in each pass, in order.
        interval: Pause between passes. Defaults to 5 minutes.
        enabled: When False, start() logs and does nothing.
        sleep: Awaitable sleep. Defaults to asyncio.sleep.

    Attributes:
        data_types: Data types refreshed in each pass.
        interval: Pause between passes.
        enabled: Whether start() may start the schedule.
    """

    def __init__(
        self,
        refresh: Callable[[DataType], Awaitable[Any]],
        *,
        data_types: Iterable[DataType] = DEFAULT_AUTOMATION_DATA_TYPES,
        interval: timedelta = DEFAULT_AUTOMATION_INTERVAL,
        enabled: bool = True,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._refresh = refresh
        self.data_types = tuple(data_types)
        self.interval = interval
        self.enabled = enabled
        self._sleep = sleep
        self._task: Optional[PeriodicTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.running

    def start(self) -> bool:
        """Start the schedule: one pass now, then one per interval.

        Starting an already running scheduler is a no-op.

        Returns:
            True if the schedule was started by this call.
        """
        if not self.enabled:
            logger.info("Automation is disabled")
            return False
        if self.running:
            logger.info("Weather automation is already running")
            return False

        self._task = PeriodicTask(
            "weather-automation",
            self.run_pass,
            self.interval,
            sleep=self._sleep,
        )
        self._task.start()
        logger.info(
            f"Weather automation started (interval: {self.interval}, "
            f"data types: {', '.join(dt.value for dt in self.data_types)})"
        )
        return True

    def stop(self) -> bool:
        """Cancel the schedule. Stopping a stopped scheduler is a no-op.

        Returns:
            True if a running schedule was stopped by this call.
        """
        if self._task is None:
            return False
        task, self._task = self._task, None
        if not task.cancel():
            return False
        logger.info("Weather automation stopped")
        return True

    async def run_pass(self) -> dict[DataType, bool]:
        """Refresh every configured data type once.

        Returns:
            Success flag per data type.
        """
        logger.debug("Running automated weather data fetch")
        results: dict[DataType, bool] = {}
        for data_type in self.data_types:
            try:
                await self._refresh(data_type)
            except HKOWeatherError as e:
                logger.error(f"Automated fetch failed for {data_type.value}: {e}")
                results[data_type] = False
            except Exception:
                logger.exception(f"Automated fetch crashed for {data_type.value}")
                results[data_type] = False
            else:
                logger.debug(f"Automated fetch completed for {data_type.value}")
                results[data_type] = True
        return results
