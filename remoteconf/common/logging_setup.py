"""
Structured Logging Setup

Every remoteconf component logs under the `remoteconf.<component>`
logger namespace, to stdout, as one JSON object per line by default.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

LOGGER_PREFIX = "remoteconf."
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in via `extra`
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "service"}


class JsonFormatter(logging.Formatter):
    """Renders a record and its `extra` fields as a single JSON line"""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _STANDARD_ATTRS
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Extras may hold datetimes or exceptions
        return json.dumps(payload, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Tags every record with the component that emitted it"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = dict(kwargs.get("extra") or {})
        extra["service"] = self.extra.get("service", "unknown")
        kwargs["extra"] = extra
        return msg, kwargs


def _make_handler(level: int, json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT))
    return handler


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """
    (Re)configure the logger of one component.

    Args:
        service_name: Component name, e.g. "config.coordinator"
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown names mean INFO
        json_format: JSON lines when True, plain text otherwise

    Returns:
        The `remoteconf.<service_name>` logger, with exactly one handler
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(LOGGER_PREFIX + service_name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(_make_handler(level, json_format))
    logger.propagate = False
    return logger


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """Component logger; REMOTECONF_LOG_LEVEL and REMOTECONF_LOG_FORMAT apply"""
    logger = setup_logging(
        service_name,
        os.environ.get("REMOTECONF_LOG_LEVEL", "INFO"),
        os.environ.get("REMOTECONF_LOG_FORMAT", "json").lower() == "json",
    )
    return ServiceLoggerAdapter(logger, {"service": service_name})


def configure_logging(level: str, log_format: str = "json") -> None:
    """
    Re-apply level and format to every remoteconf logger created so far.

    Used when settings are loaded from file after module loggers exist.
    """
    json_format = log_format.lower() == "json"
    for name, logger in list(logging.root.manager.loggerDict.items()):
        if name.startswith(LOGGER_PREFIX) and isinstance(logger, logging.Logger):
            setup_logging(name[len(LOGGER_PREFIX):], level, json_format)


def log_refresh_outcome(
    logger: logging.LoggerAdapter,
    url: str | None,
    success: bool,
    key_count: int = 0,
    error: Any = None,
) -> None:
    """Log the terminal outcome of one refresh attempt"""
    if success:
        logger.info(
            f"Config refreshed from {url}: {key_count} keys",
            extra={"url": url, "key_count": key_count},
        )
    else:
        logger.warning(
            f"Config refresh from {url} failed: {error}",
            extra={"url": url, "error": str(error)},
        )
