"""DataFrame conversion utilities for normalized weather data.

Requirements:
    pandas >= 2.0 must be installed. Install with:
        pip install pandas
    Or install hkoweather with the pandas extra:
        pip install hkoweather[pandas]

Functions:
    to_dataframe: Convert a CurrentWeather or NineDayForecast to a DataFrame

Example:
    Basic usage::

        import asyncio
        from hkoweather import DataType, WeatherService
        from hkoweather.dataframe import to_dataframe

        async def main():
            async with WeatherService() as service:
                current = await service.get_processed_data(DataType.CURRENT_WEATHER)
                df = to_dataframe(current)
                print(df[df["measure"] == "temperature"])

                forecast = await service.get_processed_data(
                    DataType.NINE_DAY_FORECAST
                )
                print(to_dataframe(forecast).head())

        asyncio.run(main())
"""

from typing import Union

from .models import CurrentWeather, NineDayForecast

_READING_MEASURES = ("temperature", "rainfall", "humidity", "wind", "pressure", "visibility")


def _check_pandas() -> None:
    """Check if pandas is installed and raise informative error if not."""
    try:
        import pandas  # noqa: F401
    except ImportError as e:
        raise ImportError(
            "pandas is required for DataFrame conversion. "
            "Install it with: pip install pandas"
        ) from e


def to_dataframe(
    model: Union[CurrentWeather, NineDayForecast],
) -> "pd.DataFrame":
    """Convert a normalized weather model to a pandas DataFrame.

    Args:
        model: Projection to convert. Can be:
            - CurrentWeather: one row per reading, with a ``measure`` column
              naming the reading list (``temperature``, ``rainfall``, ...)
              followed by the upstream fields of the reading (``place``,
              ``value``, ``unit``, ...).
            - NineDayForecast: one row per forecast day. Nested objects are
              flattened with dotted column names (``forecastMaxtemp.value``)
              and ``forecastDate`` is converted to datetime.

    Returns:
        pandas DataFrame.

    Raises:
        ImportError: If pandas is not installed.
        ValueError: If the model type is not supported.

    Example:
        >>> df = to_dataframe(forecast)
        >>> df[["forecastDate", "forecastMaxtemp.value"]].head(2)
          forecastDate  forecastMaxtemp.value
        0   2024-01-02                     21
        1   2024-01-03                     22
    """
    _check_pandas()
    import pandas as pd

    if isinstance(model, CurrentWeather):
        rows = []
        for measure in _READING_MEASURES:
            for reading in getattr(model, measure):
                if isinstance(reading, dict):
                    rows.append({"measure": measure, **reading})
        return pd.DataFrame(rows, columns=None if rows else ["measure"])

    if isinstance(model, NineDayForecast):
        days = [day for day in model.weather_forecast if isinstance(day, dict)]
        df = pd.json_normalize(days)
        if "forecastDate" in df.columns:
            df["forecastDate"] = pd.to_datetime(df["forecastDate"], format="%Y%m%d")
        return df

    raise ValueError(
        f"Unsupported model type: {type(model).__name__}. "
        "Expected CurrentWeather or NineDayForecast."
    )


__all__ = ["to_dataframe"]
