"""Logging utilities for vector-desk."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, MutableMapping

import orjson

_DEFAULT_LEVEL = os.environ.get("VDESK_LOG_LEVEL", "INFO")
_CONTEXT_PREFIX = "ctx_"

# chromadb and its http stack log every request at INFO
_QUIET_LOGGERS = ("chromadb", "httpx", "httpcore", "urllib3")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``ctx_*`` extras are lifted into ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        context = {
            key[len(_CONTEXT_PREFIX) :]: value
            for key, value in record.__dict__.items()
            if key.startswith(_CONTEXT_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


class ContextAdapter(logging.LoggerAdapter):
    """Attach fixed context (profile, collection) to every record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = {f"{_CONTEXT_PREFIX}{key}": value for key, value in (self.extra or {}).items()}
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Configure the root logger for the bridge process."""
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "vector_desk") -> logging.Logger:
    """Return configured logger, configuring root on first call."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def context_logger(name: str, **context: Any) -> ContextAdapter:
    return ContextAdapter(get_logger(name), context)


__all__ = ["JsonFormatter", "ContextAdapter", "configure_logging", "get_logger", "context_logger"]
