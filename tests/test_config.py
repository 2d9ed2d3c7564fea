import json
import logging
import sys
from datetime import timedelta

import pytest
from pydantic import ValidationError

from hkoweather import (
    HKO_BASE_URL,
    DataType,
    HKOWeatherConfigError,
    JsonFormatter,
    Language,
    WeatherSettings,
    configure_logging,
)


class TestWeatherSettings:
    def test_defaults(self):
        settings = WeatherSettings()

        assert settings.base_url == HKO_BASE_URL
        assert settings.default_language is Language.TC
        assert settings.cache_ttl == timedelta(minutes=10)
        assert settings.retry_attempts == 3
        assert settings.retry_delay == timedelta(seconds=1)
        assert settings.request_timeout == 10.0
        assert settings.automation_enabled is True
        assert settings.automation_interval == timedelta(minutes=5)
        assert settings.automation_data_types == (
            DataType.CURRENT_WEATHER,
            DataType.LOCAL_FORECAST,
            DataType.WARNING_SUMMARY,
        )
        assert settings.log_level == "INFO"

    def test_frozen(self):
        settings = WeatherSettings()
        with pytest.raises(ValidationError):
            settings.retry_attempts = 5

    def test_data_types_from_comma_string(self):
        settings = WeatherSettings(automation_data_types="fnd, swt,fnd")
        assert settings.automation_data_types == (
            DataType.NINE_DAY_FORECAST,
            DataType.SPECIAL_WEATHER_TIPS,
        )

    def test_log_level_upper_cased(self):
        assert WeatherSettings(log_level="debug").log_level == "DEBUG"


class TestFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert WeatherSettings.from_env({}) == WeatherSettings()

    def test_millisecond_durations(self):
        settings = WeatherSettings.from_env(
            {
                "HKO_CACHE_TTL_MS": "30000",
                "HKO_RETRY_DELAY_MS": "250",
                "HKO_AUTOMATION_INTERVAL_MS": "60000",
                "HKO_REQUEST_TIMEOUT_MS": "2500",
            }
        )

        assert settings.cache_ttl == timedelta(seconds=30)
        assert settings.retry_delay == timedelta(milliseconds=250)
        assert settings.automation_interval == timedelta(minutes=1)
        assert settings.request_timeout == 2.5

    def test_plain_values(self):
        settings = WeatherSettings.from_env(
            {
                "HKO_BASE_URL": "http://localhost:8080/weather.php",
                "HKO_DEFAULT_LANGUAGE": "en",
                "HKO_RETRY_ATTEMPTS": "5",
                "HKO_AUTOMATION_ENABLED": "false",
                "HKO_AUTOMATION_DATA_TYPES": "rhrread,warningInfo",
                "LOG_LEVEL": "warning",
            }
        )

        assert settings.base_url == "http://localhost:8080/weather.php"
        assert settings.default_language is Language.EN
        assert settings.retry_attempts == 5
        assert settings.automation_enabled is False
        assert settings.automation_data_types == (
            DataType.CURRENT_WEATHER,
            DataType.WARNING_INFO,
        )
        assert settings.log_level == "WARNING"

    def test_empty_values_are_ignored(self):
        settings = WeatherSettings.from_env({"HKO_CACHE_TTL_MS": "", "LOG_LEVEL": ""})
        assert settings.cache_ttl == timedelta(minutes=10)
        assert settings.log_level == "INFO"

    @pytest.mark.parametrize(
        "environ",
        [
            {"HKO_CACHE_TTL_MS": "ten minutes"},
            {"HKO_CACHE_TTL_MS": "-1"},
            {"HKO_AUTOMATION_INTERVAL_MS": "0"},
            {"HKO_RETRY_ATTEMPTS": "0"},
            {"HKO_REQUEST_TIMEOUT_MS": "0"},
            {"HKO_DEFAULT_LANGUAGE": "fr"},
            {"HKO_AUTOMATION_DATA_TYPES": "rhrread,bogus"},
            {"HKO_AUTOMATION_ENABLED": "maybe"},
        ],
    )
    def test_invalid_values(self, environ):
        with pytest.raises(HKOWeatherConfigError):
            WeatherSettings.from_env(environ)


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(self.format(record))


@pytest.fixture
def package_logger():
    logger = logging.getLogger("hkoweather")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestLogging:
    def test_json_formatter_includes_extra_fields(self):
        record = logging.LogRecord(
            "hkoweather.retry", logging.WARNING, __file__, 1, "Weather API call failed", None, None
        )
        record.data_type = "rhrread"
        record.attempt = 2

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "warning"
        assert entry["logger"] == "hkoweather.retry"
        assert entry["message"] == "Weather API call failed"
        assert entry["data_type"] == "rhrread"
        assert entry["attempt"] == 2
        assert "timestamp" in entry
        assert "stack" not in entry

    def test_json_formatter_includes_stack(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "hkoweather", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        entry = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in entry["stack"]

    def test_configure_logging(self, package_logger):
        handler = ListHandler()
        logger = configure_logging("debug", handler=handler)

        assert logger is package_logger
        assert logger.level == logging.DEBUG
        logging.getLogger("hkoweather.service").info("Weather cache cleared (0 entries)")

        assert json.loads(handler.lines[-1])["message"] == "Weather cache cleared (0 entries)"

    def test_configure_logging_replaces_previous_handler(self, package_logger):
        first, second = ListHandler(), ListHandler()
        configure_logging(handler=first)
        configure_logging(handler=second, json_format=False)

        assert first not in package_logger.handlers
        assert second in package_logger.handlers
        package_logger.info("hello")
        assert first.lines == []
        assert second.lines[-1].endswith("INFO hkoweather: hello")

    def test_configure_logging_keeps_foreign_handlers(self, package_logger):
        foreign, ours = ListHandler(), ListHandler()
        package_logger.addHandler(foreign)

        configure_logging(handler=ours)
        configure_logging(handler=ListHandler())

        assert foreign in package_logger.handlers
        assert ours not in package_logger.handlers
        assert not hasattr(ours, "_hkoweather_handler")
