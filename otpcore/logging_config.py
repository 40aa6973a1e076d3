"""Logging configuration for the OTP core."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Mapping, Optional

from otpcore.time import utc_now_isoformat


_STREAM_HANDLER_ATTR = "_is_otpcore_stream_handler"
_ROOT_LOGGER_NAME = "otpcore"


class JSONMessageFormatter(logging.Formatter):
    """Pass JSON payloads through untouched and wrap plain messages."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if message.startswith("{"):
            return message
        payload: Dict[str, Any] = {
            "ts": utc_now_isoformat(),
            "event": getattr(record, "event", record.name),
            "level": record.levelname,
            "message": message,
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _create_stream_handler(json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONMessageFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    setattr(handler, _STREAM_HANDLER_ATTR, True)
    return handler


def configure_logging(level: str | int = logging.INFO, json_output: bool = True) -> logging.Logger:
    """Attach the package stream handler to the ``otpcore`` logger if missing."""

    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    for handler in logger.handlers:
        if getattr(handler, _STREAM_HANDLER_ATTR, False):
            break
    else:
        logger.addHandler(_create_stream_handler(json_output))

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    return logger


_URI_FIELDS = ("uri", "raw_text")
_SECRET_FIELDS = ("secret", "raw_secret")
REDACTED = "***"


def uri_scheme(uri: Optional[str]) -> Optional[str]:
    """Scheme part of *uri*, the only piece of a credential URI safe to log."""

    if not uri:
        return None
    scheme, sep, _ = uri.partition("://")
    return f"{scheme}://" if sep else None


def redact_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Replace credential material in *fields* with loggable stand-ins.

    ``uri`` and ``raw_text`` collapse to a ``scheme`` field; ``secret`` and
    ``raw_secret`` become ``"***"``.
    """

    redacted = dict(fields)
    for key in _URI_FIELDS:
        if key in redacted:
            redacted.setdefault("scheme", uri_scheme(redacted.pop(key)))
    for key in _SECRET_FIELDS:
        if redacted.get(key):
            redacted[key] = REDACTED
    return redacted


class StructuredLogger:
    """Helper for emitting structured JSON logs.

    Fields pass through :func:`redact_fields` both when bound and when
    emitted, so a credential URI handed to the logger never reaches a handler.
    """

    def __init__(self, logger: logging.Logger, defaults: Optional[Mapping[str, Any]] = None):
        self._logger = logger
        self._defaults: Dict[str, Any] = redact_fields(defaults or {})

    def bind(self, **extra: Any) -> "StructuredLogger":
        merged = dict(self._defaults)
        merged.update(redact_fields(extra))
        return StructuredLogger(self._logger, merged)

    def _emit(self, level: int, event: str, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        payload: Dict[str, Any] = {
            "ts": utc_now_isoformat(),
            "event": event,
            "level": logging.getLevelName(level),
        }
        payload.update(self._defaults)
        payload.update(redact_fields(fields))
        self._logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))

    def debug(self, event: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit(logging.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit(logging.ERROR, event, **fields)


def structured_logger(logger_name: str, **defaults: Any) -> StructuredLogger:
    """Return a :class:`StructuredLogger` for *logger_name*."""

    return StructuredLogger(logging.getLogger(logger_name), defaults)


__all__ = [
    "JSONMessageFormatter",
    "StructuredLogger",
    "configure_logging",
    "redact_fields",
    "structured_logger",
    "uri_scheme",
]
