"""Logging setup for processes embedding the weather proxy.

Modules in this package only create loggers; handlers are installed by the
process, typically through configure_logging(). JsonFormatter writes one
JSON object per line, including any ``extra`` fields attached to the record
(FetchAttempt fields on upstream call records, for example).
"""

import json
import logging
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import Any, Optional, Union

_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

# Handler added by the last configure_logging() call.
_installed_handler: Optional[logging.Handler] = None


class JsonFormatter(logging.Formatter):
    """Format records as single-line JSON objects.

    Example:
        >>> logger.info("Weather API call", extra={"data_type": "rhrread"})
        {"timestamp": "2024-01-01T04:00:00.123456+00:00", "level": "info",
         "logger": "hkoweather.retry", "message": "Weather API call",
         "data_type": "rhrread"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=dt_timezone.utc
            ).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["stack"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    level: Union[int, str] = "INFO",
    *,
    json_format: bool = True,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Install a handler on the package logger.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Logging level name or number, e.g. WeatherSettings.log_level.
        json_format: Use JsonFormatter. Plain text otherwise.
        handler: Handler to install. Defaults to a stderr StreamHandler.

    Returns:
        The configured ``hkoweather`` logger.
    """
    logger = logging.getLogger("hkoweather")
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    global _installed_handler
    if _installed_handler is not None:
        logger.removeHandler(_installed_handler)

    if handler is None:
        handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    logger.addHandler(handler)
    _installed_handler = handler
    return logger
