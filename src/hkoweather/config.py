"""Configuration for the HKO weather proxy.

WeatherSettings is loaded once at startup, either by constructing it
directly or from environment variables with WeatherSettings.from_env().

Environment variables (durations in milliseconds):

    ===============================  ==================================
    HKO_BASE_URL                     upstream endpoint
    HKO_DEFAULT_LANGUAGE             en, tc or sc
    HKO_CACHE_TTL_MS                 cache time-to-live
    HKO_RETRY_ATTEMPTS               attempts per fetch
    HKO_RETRY_DELAY_MS               backoff base
    HKO_REQUEST_TIMEOUT_MS           timeout of one upstream call
    HKO_AUTOMATION_ENABLED           true/false
    HKO_AUTOMATION_INTERVAL_MS       pause between refresh passes
    HKO_AUTOMATION_DATA_TYPES        comma-separated data types
    LOG_LEVEL                        logging level name
    ===============================  ==================================

Example:
    >>> settings = WeatherSettings.from_env({"HKO_CACHE_TTL_MS": "30000"})
    >>> settings.cache_ttl
    datetime.timedelta(seconds=30)
"""

import os
from datetime import timedelta
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import HKOWeatherConfigError
from .types import (
    DEFAULT_AUTOMATION_DATA_TYPES,
    DEFAULT_AUTOMATION_INTERVAL,
    DEFAULT_CACHE_TTL,
    DEFAULT_LANGUAGE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    HKO_BASE_URL,
    DataType,
    Language,
)

_MS_FIELDS = {
    "HKO_CACHE_TTL_MS": "cache_ttl",
    "HKO_RETRY_DELAY_MS": "retry_delay",
    "HKO_AUTOMATION_INTERVAL_MS": "automation_interval",
}

_PLAIN_FIELDS = {
    "HKO_BASE_URL": "base_url",
    "HKO_DEFAULT_LANGUAGE": "default_language",
    "HKO_RETRY_ATTEMPTS": "retry_attempts",
    "HKO_AUTOMATION_ENABLED": "automation_enabled",
    "LOG_LEVEL": "log_level",
}


class WeatherSettings(BaseModel):
    """Settings of a WeatherService.

    Attributes:
        base_url: Upstream endpoint.
        default_language: Language used when a caller does not pass one.
        cache_ttl: How long a cached payload counts as fresh.
        retry_attempts: Upstream attempts per fetch (at least 1).
        retry_delay: Backoff base; the wait after attempt ``n`` is
            ``n * retry_delay``.
        request_timeout: Timeout of one upstream call in seconds.
        automation_enabled: Whether start_automation() may start the
            background refresh.
        automation_interval: Pause between background refresh passes.
        automation_data_types: Data types refreshed in each pass.
        log_level: Level passed to configure_logging().

    Example:
        >>> WeatherSettings(retry_attempts=5, automation_enabled=False)
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = HKO_BASE_URL
    default_language: Language = DEFAULT_LANGUAGE
    cache_ttl: timedelta = DEFAULT_CACHE_TTL
    retry_attempts: int = Field(default=DEFAULT_RETRY_ATTEMPTS, ge=1)
    retry_delay: timedelta = DEFAULT_RETRY_DELAY
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    automation_enabled: bool = True
    automation_interval: timedelta = DEFAULT_AUTOMATION_INTERVAL
    automation_data_types: tuple[DataType, ...] = DEFAULT_AUTOMATION_DATA_TYPES
    log_level: str = "INFO"

    @field_validator("cache_ttl", "retry_delay")
    @classmethod
    def _not_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("must not be negative")
        return value

    @field_validator("automation_interval")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("must be positive")
        return value

    @field_validator("automation_data_types", mode="before")
    @classmethod
    def _split_data_types(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("automation_data_types")
    @classmethod
    def _dedupe_data_types(cls, value: tuple[DataType, ...]) -> tuple[DataType, ...]:
        return tuple(dict.fromkeys(value))

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WeatherSettings":
        """Load settings from environment variables.

        Unset variables keep their defaults.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Validated settings.

        Raises:
            HKOWeatherConfigError: If a variable holds an invalid value.
        """
        if environ is None:
            environ = os.environ

        values: dict[str, Any] = {}
        for name, field in _PLAIN_FIELDS.items():
            if environ.get(name):
                values[field] = environ[name]
        for name, field in _MS_FIELDS.items():
            if environ.get(name):
                values[field] = timedelta(milliseconds=_parse_ms(name, environ[name]))
        if environ.get("HKO_REQUEST_TIMEOUT_MS"):
            values["request_timeout"] = (
                _parse_ms("HKO_REQUEST_TIMEOUT_MS", environ["HKO_REQUEST_TIMEOUT_MS"])
                / 1000
            )
        if environ.get("HKO_AUTOMATION_DATA_TYPES"):
            values["automation_data_types"] = environ["HKO_AUTOMATION_DATA_TYPES"]

        try:
            return cls(**values)
        except ValidationError as e:
            raise HKOWeatherConfigError(f"Invalid configuration: {e}") from e


def _parse_ms(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise HKOWeatherConfigError(
            f"{name} must be a number of milliseconds, got {raw!r}"
        ) from e
