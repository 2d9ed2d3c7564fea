"""Types and constants for the HKO weather proxy.

This module defines the enumerations, the cache key and the default
configuration constants used throughout the package.

Example:
    Parsing caller input::

        from hkoweather.types import DataType, Language

        DataType.parse("rhrread")   # DataType.CURRENT_WEATHER
        Language.parse(None)        # Language.TC (the default)
        DataType.parse("bogus")     # raises InvalidDataTypeError
"""

from datetime import timedelta
from enum import Enum
from typing import Any, NamedTuple, Optional, Union

from .exceptions import InvalidDataTypeError, InvalidLanguageError


class DataType(str, Enum):
    """Upstream resource served by the Hong Kong Observatory open-data API.

    The value of each member is the exact ``dataType`` query parameter
    expected by the upstream endpoint.

    Attributes:
        LOCAL_FORECAST: Local weather forecast (``flw``).
        NINE_DAY_FORECAST: 9-day weather forecast (``fnd``).
        CURRENT_WEATHER: Current weather report (``rhrread``).
        WARNING_SUMMARY: Weather warning summary (``warnsum``).
        WARNING_INFO: Detailed weather warning information (``warningInfo``).
        SPECIAL_WEATHER_TIPS: Special weather tips (``swt``).

    Example:
        >>> DataType.CURRENT_WEATHER.value
        'rhrread'
        >>> DataType("flw")
        <DataType.LOCAL_FORECAST: 'flw'>
    """

    LOCAL_FORECAST = "flw"
    NINE_DAY_FORECAST = "fnd"
    CURRENT_WEATHER = "rhrread"
    WARNING_SUMMARY = "warnsum"
    WARNING_INFO = "warningInfo"
    SPECIAL_WEATHER_TIPS = "swt"

    @property
    def description(self) -> str:
        """Human-readable description of the resource."""
        return DATA_TYPE_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: Union["DataType", str]) -> "DataType":
        """Convert caller input to a DataType.

        Args:
            value: A DataType member or its string value.

        Returns:
            The matching DataType.

        Raises:
            InvalidDataTypeError: If the value is not a recognized data type.

        Example:
            >>> DataType.parse("warnsum")
            <DataType.WARNING_SUMMARY: 'warnsum'>
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidDataTypeError(value, [member.value for member in cls]) from None


class Language(str, Enum):
    """Localization of upstream content.

    Attributes:
        EN: English.
        TC: Traditional Chinese.
        SC: Simplified Chinese.
    """

    EN = "en"
    TC = "tc"
    SC = "sc"

    @property
    def description(self) -> str:
        """Human-readable name of the language."""
        return LANGUAGE_DESCRIPTIONS[self]

    @classmethod
    def parse(
        cls, value: Union["Language", str, None], default: Optional["Language"] = None
    ) -> "Language":
        """Convert caller input to a Language.

        Args:
            value: A Language member, its string value, or None.
            default: Language used when ``value`` is None. Defaults to
                DEFAULT_LANGUAGE.

        Returns:
            The matching Language.

        Raises:
            InvalidLanguageError: If the value is not a supported language.
        """
        if value is None:
            return default if default is not None else DEFAULT_LANGUAGE
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidLanguageError(value, [member.value for member in cls]) from None


class CacheKey(NamedTuple):
    """Identifier of one cache slot.

    Two requests with the same key are interchangeable. The string form
    (``"rhrread_tc"``) is used in diagnostic views.

    Example:
        >>> str(CacheKey(DataType.CURRENT_WEATHER, Language.TC))
        'rhrread_tc'
    """

    data_type: DataType
    language: Language

    def __str__(self) -> str:
        return f"{self.data_type.value}_{self.language.value}"

    @classmethod
    def of(cls, data_type: Any, language: Any = None) -> "CacheKey":
        """Build a key from unvalidated caller input."""
        return cls(DataType.parse(data_type), Language.parse(language))


DATA_TYPE_DESCRIPTIONS = {
    DataType.LOCAL_FORECAST: "Local weather forecast",
    DataType.NINE_DAY_FORECAST: "9-day weather forecast",
    DataType.CURRENT_WEATHER: "Local weather report",
    DataType.WARNING_SUMMARY: "Weather warning summary",
    DataType.WARNING_INFO: "Detailed weather warning information",
    DataType.SPECIAL_WEATHER_TIPS: "Special weather tips",
}
"""dict[DataType, str]: Descriptions reported by WeatherService.describe()."""

LANGUAGE_DESCRIPTIONS = {
    Language.EN: "English",
    Language.TC: "繁體中文",
    Language.SC: "簡體中文",
}
"""dict[Language, str]: Language names in their own script."""

HKO_BASE_URL = "https://data.weather.gov.hk/weatherAPI/opendata/weather.php"
"""str: Hong Kong Observatory open-data weather endpoint."""

DEFAULT_LANGUAGE = Language.TC
"""Language: Language used when a caller does not specify one."""

DEFAULT_CACHE_TTL = timedelta(minutes=10)
"""timedelta: How long a cached payload is served without refetching."""

DEFAULT_RETRY_ATTEMPTS = 3
"""int: Upstream attempts made per fetch before giving up."""

DEFAULT_RETRY_DELAY = timedelta(seconds=1)
"""timedelta: Backoff base. The wait after attempt ``n`` is ``n`` times this."""

DEFAULT_REQUEST_TIMEOUT = 10.0
"""float: Timeout for a single upstream HTTP call in seconds."""

DEFAULT_AUTOMATION_INTERVAL = timedelta(minutes=5)
"""timedelta: Pause between background refresh passes."""

DEFAULT_AUTOMATION_DATA_TYPES = (
    DataType.CURRENT_WEATHER,
    DataType.LOCAL_FORECAST,
    DataType.WARNING_SUMMARY,
)
"""tuple[DataType, ...]: Data types refreshed by the background scheduler."""
