"""Fetch orchestration for the HKO weather proxy.

WeatherService is the single entry point for route layers. It combines the
cache, the retrying fetcher and the background scheduler:

    caller -> fetch_weather_data()
        -> fresh cache entry: return it, no network call
        -> otherwise: RetryingFetcher -> HKOClient, then CacheStore.put()

Concurrent cache misses for the same (data type, language) share one
in-flight fetch. Every waiter receives the same payload or the same
FetchExhaustedError, so a burst of callers triggers one retry sequence
against the upstream instead of one per caller. A waiter that is cancelled
does not cancel the shared fetch. close() cancels every fetch still in flight.

A failed fetch leaves any cached entry untouched. Stale entries are never
served as a fallback.

Example:
    >>> async with WeatherService(WeatherSettings.from_env()) as service:
    ...     service.start_automation()
    ...     data = await service.fetch_weather_data("rhrread", "en")
    ...     summary = await service.get_weather_summary()
    ...     status = service.get_cache_status()
"""

import asyncio
import logging
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import Any, Optional, Union

from .cache import CacheStore
from .client import HKOClient
from .config import WeatherSettings
from .models import (
    AutomationInfo,
    CacheEntryStatus,
    ProjectionModel,
    ServiceInfo,
    WeatherSummary,
)
from .processing import (
    process_current_weather,
    process_local_forecast,
    process_warning_summary,
    process_weather_data,
)
from .retry import RetryingFetcher, Sleep
from .scheduler import AutomationScheduler
from .types import CacheKey, DataType, Language

logger = logging.getLogger(__name__)


class WeatherService:
    """Cached, retrying access to the HKO weather API.

    Bound to the event loop it is first used on.

    Args:
        settings: Service configuration. Defaults to WeatherSettings().
        client: Upstream client. Defaults to an HKOClient built from
            ``settings``.
        cache: Cache store. Defaults to a new CacheStore with the configured
            TTL.
        sleep: Awaitable sleep used for retry backoff and the automation
            interval. Defaults to asyncio.sleep.

    Attributes:
        settings: Service configuration.
        cache: The cache store shared with the automation scheduler.
        fetcher: The retrying fetcher.
        scheduler: The automation scheduler.

    Example:
        Independent instances with injected collaborators::

            service = WeatherService(
                WeatherSettings(retry_attempts=2, automation_enabled=False),
                client=HKOClient(transport=httpx.MockTransport(handler)),
                sleep=AsyncMock(),
            )
    """

    def __init__(
        self,
        settings: Optional[WeatherSettings] = None,
        *,
        client: Optional[HKOClient] = None,
        cache: Optional[CacheStore] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings if settings is not None else WeatherSettings()
        self._client = (
            client
            if client is not None
            else HKOClient(
                base_url=self.settings.base_url,
                timeout=self.settings.request_timeout,
            )
        )
        self.cache = cache if cache is not None else CacheStore(self.settings.cache_ttl)
        self.fetcher = RetryingFetcher(
            self._client,
            attempts=self.settings.retry_attempts,
            delay=self.settings.retry_delay,
            sleep=sleep,
        )
        self.scheduler = AutomationScheduler(
            self.fetch_weather_data,
            data_types=self.settings.automation_data_types,
            interval=self.settings.automation_interval,
            enabled=self.settings.automation_enabled,
            sleep=sleep,
        )
        self._inflight: dict[CacheKey, asyncio.Future] = {}

    async def __aenter__(self) -> "WeatherService":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop automation, cancel in-flight fetches and close the client."""
        self.stop_automation()
        pending = list(self._inflight.values())
        for future in pending:
            future.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self._client.close()

    async def fetch_weather_data(
        self,
        data_type: Union[DataType, str],
        language: Union[Language, str, None] = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get the raw payload for a data type, from cache or upstream.

        Args:
            data_type: Upstream resource, as a DataType or its value.
            language: Localization. Defaults to settings.default_language.
            use_cache: Serve a fresh cache entry if one exists. When False
                the upstream is always asked. The result refreshes the cache
                either way.

        Returns:
            Raw upstream JSON object. Each call gets its own shallow copy,
            so adding or replacing top-level keys leaves the cache intact.

        Raises:
            InvalidDataTypeError: If ``data_type`` is not recognized.
            InvalidLanguageError: If ``language`` is not supported.
            FetchExhaustedError: If every upstream attempt failed.

        Example:
            >>> data = await service.fetch_weather_data("rhrread")
            >>> fresh = await service.fetch_weather_data(
            ...     DataType.LOCAL_FORECAST, Language.EN, use_cache=False
            ... )
        """
        key = CacheKey(
            DataType.parse(data_type),
            Language.parse(language, self.settings.default_language),
        )

        if use_cache:
            entry = self.cache.get_fresh(key)
            if entry is not None:
                logger.debug(f"Cache hit for {key}")
                return dict(entry.payload)

        logger.debug(f"Cache miss for {key}")

        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._fetch_and_store(key))
            self._inflight[key] = future
            future.add_done_callback(lambda f: self._forget_inflight(key, f))
        else:
            logger.debug(f"Joining in-flight fetch for {key}")

        return dict(await asyncio.shield(future))

    async def _fetch_and_store(self, key: CacheKey) -> dict[str, Any]:
        payload = await self.fetcher.fetch(key.data_type, key.language)
        self.cache.put(key, payload)
        return payload

    def _forget_inflight(self, key: CacheKey, future: asyncio.Future) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]
        if not future.cancelled():
            # Mark the error retrieved in case every waiter was cancelled.
            future.exception()

    async def get_processed_data(
        self,
        data_type: Union[DataType, str],
        language: Union[Language, str, None] = None,
        use_cache: bool = True,
    ) -> ProjectionModel:
        """Fetch a data type and return its normalized projection.

        Raises:
            InvalidDataTypeError: If ``data_type`` is not recognized.
            InvalidLanguageError: If ``language`` is not supported.
            FetchExhaustedError: If every upstream attempt failed.
        """
        data_type = DataType.parse(data_type)
        data = await self.fetch_weather_data(data_type, language, use_cache)
        return process_weather_data(data_type, data)

    async def get_weather_summary(
        self, language: Union[Language, str, None] = None
    ) -> WeatherSummary:
        """Current weather, local forecast and warnings in one call.

        The three data types are fetched concurrently.

        Raises:
            InvalidLanguageError: If ``language`` is not supported.
            FetchExhaustedError: If any of the three fetches failed.
        """
        current, forecast, warnings = await asyncio.gather(
            self.fetch_weather_data(DataType.CURRENT_WEATHER, language),
            self.fetch_weather_data(DataType.LOCAL_FORECAST, language),
            self.fetch_weather_data(DataType.WARNING_SUMMARY, language),
        )
        return WeatherSummary(
            current=process_current_weather(current),
            forecast=process_local_forecast(forecast),
            warnings=process_warning_summary(warnings),
            timestamp=datetime.now(tz=dt_timezone.utc),
        )

    def get_cache_status(self) -> dict[str, CacheEntryStatus]:
        """Diagnostic view of the cache, keyed like ``"rhrread_tc"``."""
        return self.cache.snapshot()

    def clear_cache(self) -> None:
        """Drop every cached entry. The next fetch of any key is a miss."""
        removed = self.cache.clear()
        logger.info(f"Weather cache cleared ({removed} entries)")

    def start_automation(self) -> bool:
        """Start the background refresh. Must be called inside an event loop.

        No-op when disabled by configuration or already running.

        Returns:
            True if automation was started by this call.
        """
        return self.scheduler.start()

    def stop_automation(self) -> bool:
        """Stop the background refresh. No-op when not running.

        Returns:
            True if automation was stopped by this call.
        """
        return self.scheduler.stop()

    @property
    def automation_running(self) -> bool:
        return self.scheduler.running

    def describe(self) -> ServiceInfo:
        """Supported data types and languages, and automation settings."""
        return ServiceInfo(
            supported_data_types={dt.value: dt.description for dt in DataType},
            supported_languages={lang.value: lang.description for lang in Language},
            default_language=self.settings.default_language,
            automation=AutomationInfo(
                enabled=self.scheduler.enabled,
                running=self.scheduler.running,
                interval=self.scheduler.interval.total_seconds(),
                data_types=list(self.scheduler.data_types),
            ),
        )
