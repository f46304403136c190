"""
Structured logging for esimport.

Every record is a single JSON line written through the standard ``logging``
module. Extra keyword arguments passed to the log methods become fields of
the record, and the id of the current build cycle (if any) is attached
automatically.

Usage:
    from esimport.common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Import map written", entries=3)

    logger = logger.with_context(package="fellowship")
    logger.warning("No entry points found")
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import LOG_LEVELS, EnvVars
from .errors import ValidationError

_build_id: ContextVar[Optional[str]] = ContextVar("esimport_build_id", default=None)

_HANDLER_NAME = "esimport-json"


def set_build_id(build_id: str) -> None:
    """Attach a build cycle id to all records logged in the current context."""
    _build_id.set(build_id)


def get_build_id() -> Optional[str]:
    return _build_id.get()


def clear_build_id() -> None:
    _build_id.set(None)


class JSONFormatter(logging.Formatter):
    """Render a log record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", record.name),
            "message": record.getMessage(),
        }
        build_id = get_build_id()
        if build_id:
            payload["build_id"] = build_id
        payload.update(getattr(record, "fields", {}))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(log_level: Optional[str]) -> int:
    """
    Map a level name to its logging constant.

    Raises:
        ValidationError: If the name is not one of LOG_LEVELS
    """
    level = log_level or os.environ.get(EnvVars.LOG_LEVEL, "INFO")
    if not isinstance(level, str):
        return int(level)
    if level.lower() not in LOG_LEVELS:
        raise ValidationError(
            f"Invalid log level '{level}'. Expected one of: {', '.join(LOG_LEVELS)}"
        )
    return getattr(logging, level.upper())


def _ensure_handler() -> None:
    root = logging.getLogger("esimport")
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
    root.propagate = False


class EsimportLogger:
    """
    Thin structured wrapper around :class:`logging.Logger`.

    Attributes:
        service_name: Name the records are tagged with
        context: Fields added to every record of this logger
    """

    def __init__(
        self,
        service_name: str,
        log_level: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.service_name = service_name
        self.context: Dict[str, Any] = dict(context or {})
        name = service_name if service_name.startswith("esimport") else f"esimport.{service_name}"
        self._logger = logging.getLogger(name)
        if log_level is not None:
            self._logger.setLevel(_resolve_level(log_level))
        _ensure_handler()

    def with_context(self, **fields: Any) -> "EsimportLogger":
        """Return a child logger carrying additional fields."""
        child = EsimportLogger.__new__(EsimportLogger)
        child.service_name = self.service_name
        child.context = {**self.context, **fields}
        child._logger = self._logger
        return child

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={"service": self.service_name, "fields": {**self.context, **fields}},
        )

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    warn = warning

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, **fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._log(logging.CRITICAL, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **fields)


def get_logger(service_name: str, log_level: Optional[str] = None) -> EsimportLogger:
    """Create a structured logger for a module or service."""
    return EsimportLogger(service_name, log_level=log_level)


def configure_logging(service_name: str = "esimport", log_level: Optional[str] = None) -> EsimportLogger:
    """
    Set the level of all esimport loggers and return the top level logger.

    Args:
        service_name: Name of the returned logger
        log_level: Level name, defaults to ``ESIMPORT_LOG_LEVEL`` or INFO
    """
    _ensure_handler()
    logging.getLogger("esimport").setLevel(_resolve_level(log_level))
    return EsimportLogger(service_name)
