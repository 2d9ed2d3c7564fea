"""Pydantic models for the HKO weather proxy.

Key model groups:
    1. **Cache**: CacheEntry (stored payload) and CacheEntryStatus
       (diagnostic view returned by get_cache_status()).
    2. **Observability**: FetchAttempt, emitted once per upstream attempt.
    3. **Projections**: normalized shapes of each upstream data type,
       built by hkoweather.processing.
    4. **Service**: WeatherSummary and ServiceInfo.

Projection models use snake_case attributes and dump camelCase keys when
serialized with ``by_alias=True``, matching the upstream naming.

Example:
    Serializing a projection::

        current = await service.get_processed_data("rhrread")
        current.model_dump(by_alias=True)
        # {"temperature": [...], "updateTime": "2024-01-01T12:02:00+08:00", ...}
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .types import DataType, Language


class CacheEntry(BaseModel):
    """One cached upstream payload.

    Entries are immutable. A refresh replaces the whole entry, so the
    payload and its timestamp always belong to the same fetch.

    Attributes:
        payload: Raw JSON object returned by the upstream.
        fetched_at: When the payload was fetched (timezone-aware UTC).
    """

    model_config = ConfigDict(frozen=True)

    payload: dict[str, Any]
    fetched_at: datetime

    def age(self, now: datetime) -> timedelta:
        """Time elapsed between the fetch and ``now``."""
        return now - self.fetched_at


class CacheEntryStatus(BaseModel):
    """Diagnostic view of one cache slot.

    Attributes:
        timestamp: When the payload was fetched.
        age: Seconds elapsed since the fetch.
        expired: Whether the entry is past its TTL.

    Example:
        >>> service.get_cache_status()["rhrread_tc"].model_dump(mode="json")
        {'timestamp': '2024-01-01T04:00:00Z', 'age': 12.5, 'expired': False}
    """

    timestamp: datetime
    age: float
    expired: bool


class FetchAttempt(BaseModel):
    """Outcome of a single upstream attempt.

    Attributes:
        data_type: Requested data type value.
        language: Requested language value.
        attempt: 1-based attempt number.
        success: Whether the attempt returned data.
        elapsed: Duration of the attempt in seconds.
        error: Error message of a failed attempt.
    """

    data_type: str
    language: str
    attempt: int
    success: bool
    elapsed: float
    error: Optional[str] = None


class ProjectionModel(BaseModel):
    """Base for normalized upstream shapes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RainfallPeriod(ProjectionModel):
    start_time: str = "N/A"
    end_time: str = "N/A"


class CurrentWeather(ProjectionModel):
    """Normalized current weather report (``rhrread``).

    Reading lists hold the upstream objects unchanged, for example
    ``{"place": "King's Park", "value": 23, "unit": "C"}``.
    """

    temperature: list[Any] = Field(default_factory=list)
    rainfall: list[Any] = Field(default_factory=list)
    humidity: list[Any] = Field(default_factory=list)
    wind: list[Any] = Field(default_factory=list)
    pressure: list[Any] = Field(default_factory=list)
    visibility: list[Any] = Field(default_factory=list)
    warning_message: list[Any] = Field(default_factory=list)
    tc_message: list[Any] = Field(default_factory=list)
    icon: list[Any] = Field(default_factory=list)
    update_time: str = "N/A"
    rainfall_time: RainfallPeriod = Field(default_factory=RainfallPeriod)


class LocalForecast(ProjectionModel):
    """Normalized local weather forecast (``flw``)."""

    general_situation: str = ""
    tc_info: str = ""
    fire_danger_warning: str = ""
    forecast_period: str = ""
    forecast_desc: str = ""
    outlook: str = ""
    update_time: str = "N/A"


class NineDayForecast(ProjectionModel):
    """Normalized 9-day forecast (``fnd``).

    ``weather_forecast`` holds one upstream object per day.
    """

    forecast_date: str = ""
    forecast_period: str = ""
    general_situation: str = ""
    weather_forecast: list[Any] = Field(default_factory=list)
    sea_temp: Any = Field(default_factory=dict)
    soil_temp: Any = Field(default_factory=dict)
    update_time: str = "N/A"


class WarningSummary(ProjectionModel):
    """Normalized warning summary (``warnsum``)."""

    warning_info: list[Any] = Field(default_factory=list)
    update_time: str = "N/A"


class DetailedWarnings(ProjectionModel):
    """Normalized detailed warnings (``warningInfo``)."""

    warning_info: list[Any] = Field(default_factory=list)
    update_time: str = "N/A"


class SpecialWeatherTips(ProjectionModel):
    """Normalized special weather tips (``swt``)."""

    swt: list[Any] = Field(default_factory=list)
    update_time: str = "N/A"


class WeatherSummary(ProjectionModel):
    """Current conditions, forecast and warnings in one response.

    Attributes:
        current: Projection of the current weather report.
        forecast: Projection of the local forecast.
        warnings: Projection of the warning summary.
        timestamp: When the summary was assembled (UTC).
    """

    current: CurrentWeather
    forecast: LocalForecast
    warnings: WarningSummary
    timestamp: datetime


class AutomationInfo(ProjectionModel):
    enabled: bool
    running: bool
    interval: float
    data_types: list[DataType]


class ServiceInfo(ProjectionModel):
    """Capabilities and automation settings of a WeatherService.

    Attributes:
        supported_data_types: Data type value to description.
        supported_languages: Language code to language name.
        default_language: Language used when none is requested.
        automation: Background refresh settings and state. ``interval`` is
            in seconds.
    """

    supported_data_types: dict[str, str]
    supported_languages: dict[str, str]
    default_language: Language
    automation: AutomationInfo
