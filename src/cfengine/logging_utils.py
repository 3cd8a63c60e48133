from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, Optional, TextIO, Union

from .config import ConfigError


# Metadata keys copied from logger.info(..., extra={}) into the JSON payload.
EXTRA_FIELDS = (
    "event",
    "user_id",
    "item_id",
    "shape",
    "total_interactions",
    "sparsity",
    "candidates",
    "returned",
    "skipped",
    "step",
    "exception_type",
)


class JsonFormatter(logging.Formatter):
    """
    A structured JSON formatter for the matrix engine.

    Every record becomes a single JSON object so batch rebuild logs can be
    indexed by the log pipeline of the host service.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr in EXTRA_FIELDS:
            if hasattr(record, attr):
                log_payload[attr] = getattr(record, attr)

        if record.exc_info:
            log_payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_payload, ensure_ascii=False, default=str)


LOG_LEVEL_ENV = "CFENGINE_LOG_LEVEL"


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV) or "INFO"
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ConfigError(f"Unknown log level {level!r}.")
    return resolved


def configure_logger(
    name: str = "cfengine.matrix",
    level: Optional[Union[int, str]] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Return the named engine logger with exactly one JSON handler attached.

    Args:
        name: Logger name.
        level: Logging constant or level name ("DEBUG"). When omitted it comes
            from CFENGINE_LOG_LEVEL, falling back to INFO.
        stream: Target for a newly attached handler. Defaults to stdout.

    Raises:
        ConfigError: If the level name is not a known logging level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    has_json_handler = any(isinstance(h.formatter, JsonFormatter) for h in logger.handlers)
    if not has_json_handler:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    logger.propagate = False
    return logger
