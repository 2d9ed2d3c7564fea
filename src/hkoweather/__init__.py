"""Caching, retrying proxy core for the Hong Kong Observatory weather API.

This package fetches the HKO open-data weather endpoint for six data types
in three languages, caches each (data type, language) payload with a TTL,
retries transient upstream failures with linear backoff, and can refresh a
fixed set of data types in the background.

Key features:
    - Single-attempt async HTTP client (httpx) with typed failures
    - Bounded retry with linear backoff and per-attempt events
    - Thread-safe in-memory TTL cache with a diagnostic snapshot
    - Coalescing of concurrent cache misses into one upstream fetch
    - Cancellable background refresh that survives upstream failures
    - Normalized pydantic projections for every data type
    - Optional DataFrame conversion via hkoweather.dataframe

Components:
    - **HKOClient**: one GET per call (hkoweather.client)
    - **RetryingFetcher**: bounded retries around the client
    - **CacheStore**: (data type, language) -> payload + fetch time
    - **WeatherService**: cache lookup, fetch, cache population
    - **AutomationScheduler**: periodic refresh through WeatherService

Example:
    Serve current weather and keep popular data warm::

        import asyncio
        from hkoweather import WeatherService, WeatherSettings, configure_logging

        async def main():
            settings = WeatherSettings.from_env()
            configure_logging(settings.log_level)
            async with WeatherService(settings) as service:
                service.start_automation()
                data = await service.fetch_weather_data("rhrread", "en")
                print(data["updateTime"])
                print(service.get_cache_status())

        asyncio.run(main())

    Handling failures::

        from hkoweather import FetchExhaustedError, InvalidDataTypeError

        try:
            data = await service.fetch_weather_data(data_type, lang)
        except InvalidDataTypeError as e:
            ...  # client error, nothing was sent upstream
        except FetchExhaustedError as e:
            print(e.data_type, e.language, e.attempts, e.last_error)

See Also:
    - HKO open data API: https://data.weather.gov.hk/weatherAPI/doc/HKO_Open_Data_API_Documentation.pdf
"""

from .cache import CacheStore
from .client import HKOClient
from .config import WeatherSettings
from .exceptions import (
    FetchExhaustedError,
    HKOWeatherConfigError,
    HKOWeatherError,
    HKOWeatherValidationError,
    InvalidDataTypeError,
    InvalidLanguageError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamTransportError,
)
from .log import JsonFormatter, configure_logging
from .models import (
    CacheEntry,
    CacheEntryStatus,
    CurrentWeather,
    DetailedWarnings,
    FetchAttempt,
    LocalForecast,
    NineDayForecast,
    ServiceInfo,
    SpecialWeatherTips,
    WarningSummary,
    WeatherSummary,
)
from .processing import PROCESSORS, process_weather_data
from .retry import RetryingFetcher, linear_backoff
from .scheduler import AutomationScheduler, PeriodicTask
from .service import WeatherService
from .types import (
    DEFAULT_AUTOMATION_DATA_TYPES,
    DEFAULT_AUTOMATION_INTERVAL,
    DEFAULT_CACHE_TTL,
    DEFAULT_LANGUAGE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    HKO_BASE_URL,
    CacheKey,
    DataType,
    Language,
)

__all__ = [
    "WeatherService",
    "WeatherSettings",
    "HKOClient",
    "RetryingFetcher",
    "linear_backoff",
    "CacheStore",
    "AutomationScheduler",
    "PeriodicTask",
    "DataType",
    "Language",
    "CacheKey",
    "CacheEntry",
    "CacheEntryStatus",
    "FetchAttempt",
    "CurrentWeather",
    "LocalForecast",
    "NineDayForecast",
    "WarningSummary",
    "DetailedWarnings",
    "SpecialWeatherTips",
    "WeatherSummary",
    "ServiceInfo",
    "PROCESSORS",
    "process_weather_data",
    "JsonFormatter",
    "configure_logging",
    "HKOWeatherError",
    "HKOWeatherValidationError",
    "InvalidDataTypeError",
    "InvalidLanguageError",
    "HKOWeatherConfigError",
    "UpstreamError",
    "UpstreamHTTPError",
    "UpstreamTransportError",
    "FetchExhaustedError",
    "HKO_BASE_URL",
    "DEFAULT_LANGUAGE",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_AUTOMATION_INTERVAL",
    "DEFAULT_AUTOMATION_DATA_TYPES",
]
