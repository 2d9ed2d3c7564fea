"""Basic usage examples for the HKO weather service."""

import asyncio

from hkoweather import (
    DataType,
    FetchExhaustedError,
    Language,
    WeatherService,
    WeatherSettings,
    configure_logging,
)


async def current_example(service: WeatherService) -> None:
    """Get the current weather report."""
    current = await service.get_processed_data(DataType.CURRENT_WEATHER, Language.EN)

    print("=== Current Weather ===")
    print(f"Updated: {current.update_time}")
    for reading in current.temperature[:5]:
        print(f"{reading['place']}: {reading['value']}°{reading['unit']}")
    for message in current.warning_message:
        print(f"Warning: {message}")


async def forecast_example(service: WeatherService) -> None:
    """Get the 9-day forecast."""
    forecast = await service.get_processed_data(DataType.NINE_DAY_FORECAST, "en")

    print("\n=== 9-Day Forecast ===")
    print(forecast.general_situation)
    for day in forecast.weather_forecast:
        low = day["forecastMintemp"]["value"]
        high = day["forecastMaxtemp"]["value"]
        print(f"{day['forecastDate']} ({day['week']}): {low}°C - {high}°C")


async def cache_example(service: WeatherService) -> None:
    """Show cache hits and the cache status."""
    await service.fetch_weather_data("rhrread", "tc")
    await service.fetch_weather_data("rhrread", "tc")

    print("\n=== Cache Status ===")
    for key, status in service.get_cache_status().items():
        state = "expired" if status.expired else "fresh"
        print(f"{key}: {status.age:.1f}s old, {state}")


async def summary_example(service: WeatherService) -> None:
    """Get the combined summary."""
    summary = await service.get_weather_summary("en")

    print("\n=== Summary ===")
    print(summary.forecast.forecast_desc)
    print(f"Active warnings: {len(summary.warnings.warning_info)}")


async def dataframe_example(service: WeatherService) -> None:
    """Convert to pandas DataFrame."""
    from hkoweather.dataframe import to_dataframe

    current = await service.get_processed_data(DataType.CURRENT_WEATHER, "en")
    try:
        df = to_dataframe(current)
    except ImportError:
        print("\n=== DataFrame Example ===")
        print("Install pandas: pip install hkoweather[pandas]")
        return

    print("\n=== DataFrame Example ===")
    print(f"Shape: {df.shape}")
    print(df[df["measure"] == "temperature"].head())


async def main() -> None:
    """Run all examples."""
    settings = WeatherSettings.from_env()
    configure_logging(settings.log_level, json_format=False)

    async with WeatherService(settings) as service:
        service.start_automation()
        try:
            await current_example(service)
            await forecast_example(service)
            await cache_example(service)
            await summary_example(service)
            await dataframe_example(service)
        except FetchExhaustedError as e:
            print(f"Upstream unavailable: {e}")


if __name__ == "__main__":
    asyncio.run(main())
