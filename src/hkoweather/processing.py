"""Projections from raw upstream payloads to normalized models.

Each function is pure and tolerates missing fields: absent lists become
``[]``, absent text becomes ``""`` and an absent update time becomes
``"N/A"``. PROCESSORS maps every DataType to its projection.

Example:
    >>> raw = {"temperature": {"data": [{"place": "HK Observatory", "value": 23}]}}
    >>> process_current_weather(raw).temperature
    [{'place': 'HK Observatory', 'value': 23}]
    >>> process_weather_data(DataType.LOCAL_FORECAST, {}).update_time
    'N/A'
"""

from typing import Any, Callable, Mapping

from .models import (
    CurrentWeather,
    DetailedWarnings,
    LocalForecast,
    NineDayForecast,
    ProjectionModel,
    RainfallPeriod,
    SpecialWeatherTips,
    WarningSummary,
)
from .types import DataType

Projection = Callable[[Mapping[str, Any]], ProjectionModel]


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) and value else default


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    return value if isinstance(value, Mapping) else {}


def _readings(data: Mapping[str, Any], name: str) -> list[Any]:
    return _list(_section(data, name).get("data"))


def _update_time(data: Mapping[str, Any]) -> str:
    return _text(data.get("updateTime"), "N/A")


def process_current_weather(data: Mapping[str, Any]) -> CurrentWeather:
    """Project a ``rhrread`` payload."""
    rainfall = _section(data, "rainfall")
    return CurrentWeather(
        temperature=_readings(data, "temperature"),
        rainfall=_readings(data, "rainfall"),
        humidity=_readings(data, "humidity"),
        wind=_readings(data, "wind"),
        pressure=_readings(data, "pressure"),
        visibility=_readings(data, "visibility"),
        warning_message=_list(data.get("warningMessage")),
        tc_message=_list(data.get("tcmessage")),
        icon=_list(data.get("icon")),
        update_time=_update_time(data),
        rainfall_time=RainfallPeriod(
            start_time=_text(rainfall.get("startTime"), "N/A"),
            end_time=_text(rainfall.get("endTime"), "N/A"),
        ),
    )


def process_local_forecast(data: Mapping[str, Any]) -> LocalForecast:
    """Project a ``flw`` payload."""
    return LocalForecast(
        general_situation=_text(data.get("generalSituation")),
        tc_info=_text(data.get("tcInfo")),
        fire_danger_warning=_text(data.get("fireDangerWarning")),
        forecast_period=_text(data.get("forecastPeriod")),
        forecast_desc=_text(data.get("forecastDesc")),
        outlook=_text(data.get("outlook")),
        update_time=_update_time(data),
    )


def process_nine_day_forecast(data: Mapping[str, Any]) -> NineDayForecast:
    """Project a ``fnd`` payload.

    ``seaTemp`` and ``soilTemp`` are passed through as sent; the upstream
    uses an object for the former and a list for the latter.
    """
    return NineDayForecast(
        forecast_date=_text(data.get("forecastDate")),
        forecast_period=_text(data.get("forecastPeriod")),
        general_situation=_text(data.get("generalSituation")),
        weather_forecast=_list(data.get("weatherForecast")),
        sea_temp=data.get("seaTemp") or {},
        soil_temp=data.get("soilTemp") or {},
        update_time=_update_time(data),
    )


def process_warning_summary(data: Mapping[str, Any]) -> WarningSummary:
    """Project a ``warnsum`` payload."""
    return WarningSummary(
        warning_info=_list(data.get("warningInfo")),
        update_time=_update_time(data),
    )


def process_detailed_warnings(data: Mapping[str, Any]) -> DetailedWarnings:
    """Project a ``warningInfo`` payload."""
    return DetailedWarnings(
        warning_info=_list(data.get("warningInfo")),
        update_time=_update_time(data),
    )


def process_special_weather_tips(data: Mapping[str, Any]) -> SpecialWeatherTips:
    """Project a ``swt`` payload."""
    return SpecialWeatherTips(
        swt=_list(data.get("swt")),
        update_time=_update_time(data),
    )


PROCESSORS: dict[DataType, Projection] = {
    DataType.CURRENT_WEATHER: process_current_weather,
    DataType.LOCAL_FORECAST: process_local_forecast,
    DataType.NINE_DAY_FORECAST: process_nine_day_forecast,
    DataType.WARNING_SUMMARY: process_warning_summary,
    DataType.WARNING_INFO: process_detailed_warnings,
    DataType.SPECIAL_WEATHER_TIPS: process_special_weather_tips,
}
"""dict[DataType, Projection]: Projection for every data type."""


def process_weather_data(data_type: DataType, data: Mapping[str, Any]) -> ProjectionModel:
    """Project a raw payload with the projection registered for ``data_type``.

    Args:
        data_type: Data type the payload was fetched for.
        data: Raw upstream payload.

    Returns:
        The normalized model.

    Raises:
        InvalidDataTypeError: If ``data_type`` is not a recognized data type.
    """
    return PROCESSORS[DataType.parse(data_type)](data)
