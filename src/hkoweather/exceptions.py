"""Exceptions for the HKO weather proxy.

All exceptions inherit from HKOWeatherError so callers can catch every
package error with a single except clause.

Retryable upstream failures (UpstreamHTTPError, UpstreamTransportError)
are raised by the HTTP client and consumed by the retrying fetcher. They
only reach callers wrapped in FetchExhaustedError.

Example:
    Mapping errors to HTTP statuses in a route layer::

        from hkoweather import (
            FetchExhaustedError,
            HKOWeatherValidationError,
        )

        try:
            data = await service.fetch_weather_data(data_type, lang)
        except HKOWeatherValidationError as e:
            return 400, {"error": str(e)}
        except FetchExhaustedError as e:
            return 500, {"error": "Internal Server Error", "details": str(e)}
"""

from typing import Any, Optional, Sequence


class HKOWeatherError(Exception):
    """Base exception for all hkoweather errors."""

    pass


class HKOWeatherValidationError(HKOWeatherError):
    """Exception raised when caller input is rejected.

    Raised before any network call is made.
    """

    pass


class InvalidDataTypeError(HKOWeatherValidationError):
    """Exception raised for an unrecognized data type.

    Args:
        value: The rejected value.
        available: The accepted data type values.

    Attributes:
        value: The rejected value.
        available: The accepted data type values.

    Example:
        >>> raise InvalidDataTypeError("bogus", ["flw", "fnd"])
        InvalidDataTypeError: Invalid data type: 'bogus' (available: flw, fnd)
    """

    def __init__(self, value: Any, available: Sequence[str]) -> None:
        self.value = value
        self.available = list(available)
        super().__init__(
            f"Invalid data type: {value!r} (available: {', '.join(self.available)})"
        )


class InvalidLanguageError(HKOWeatherValidationError):
    """Exception raised for an unsupported language.

    Args:
        value: The rejected value.
        available: The accepted language codes.
    """

    def __init__(self, value: Any, available: Sequence[str]) -> None:
        self.value = value
        self.available = list(available)
        super().__init__(
            f"Invalid language: {value!r} (available: {', '.join(self.available)})"
        )


class HKOWeatherConfigError(HKOWeatherError):
    """Exception raised when configuration values are invalid."""

    pass


class UpstreamError(HKOWeatherError):
    """Base exception for a single failed upstream attempt.

    Both subclasses are retryable.
    """

    pass


class UpstreamHTTPError(UpstreamError):
    """Exception raised when the upstream answers with a non-2xx status.

    Args:
        status_code: HTTP status code of the response.
        reason_phrase: HTTP reason phrase of the response.

    Attributes:
        status_code: HTTP status code of the response.
        reason_phrase: HTTP reason phrase of the response.

    Example:
        >>> raise UpstreamHTTPError(503, "Service Unavailable")
        UpstreamHTTPError: HTTP 503: Service Unavailable
    """

    def __init__(self, status_code: int, reason_phrase: str) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        super().__init__(f"HTTP {status_code}: {reason_phrase}")


class UpstreamTransportError(UpstreamError):
    """Exception raised when the upstream cannot be reached or understood.

    Covers connection failures, timeouts and malformed response bodies.
    Wraps the underlying httpx or JSON exception.
    """

    pass


class FetchExhaustedError(HKOWeatherError):
    """Exception raised when every upstream attempt failed.

    Terminal for the call: the orchestrator does not retry it further and
    leaves any cached entry untouched.

    Args:
        data_type: Data type value that was requested.
        language: Language value that was requested.
        attempts: Number of attempts made.
        last_error: The error of the final attempt.

    Attributes:
        data_type: Data type value that was requested.
        language: Language value that was requested.
        attempts: Number of attempts made.
        last_error: The error of the final attempt.

    Example:
        >>> raise FetchExhaustedError("rhrread", "tc", 3, UpstreamHTTPError(502, "Bad Gateway"))
        FetchExhaustedError: Failed to fetch rhrread (tc) after 3 attempts: HTTP 502: Bad Gateway
    """

    def __init__(
        self,
        data_type: str,
        language: str,
        attempts: int,
        last_error: Optional[BaseException],
    ) -> None:
        self.data_type = data_type
        self.language = language
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed to fetch {data_type} ({language}) after {attempts} attempts: "
            f"{last_error}"
        )
