"""Logger setup for the bridge.

All loggers hang off the ``bridge`` parent, which owns the single stream
handler. Env switches:

  BRIDGE_LOG_JSON            1/true/yes/on -> one JSON object per line
  BRIDGE_LOG_LEVEL           level for every bridge logger (default INFO)
  BRIDGE_REQUEST_LOG_LEVEL   override for the per-request access log
"""
from __future__ import annotations

import json
import logging
import os

ROOT_LOGGER = "bridge"
REQUEST_COMPONENT = "requests"

LOG_JSON_ENV = "BRIDGE_LOG_JSON"
LOG_LEVEL_ENV = "BRIDGE_LOG_LEVEL"
REQUEST_LOG_LEVEL_ENV = "BRIDGE_REQUEST_LOG_LEVEL"

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonLineFormatter(logging.Formatter):
    """Compact JSON: ts, level, logger, component, msg and exc when present."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "component": record.name.rpartition(".")[2],
            "msg": record.getMessage(),
        }
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, separators=(",", ":"))


def _level_from_env(env: str, default: str = "INFO") -> int:
    return getattr(logging, os.getenv(env, default).upper(), logging.INFO)


def _json_enabled() -> bool:
    return os.getenv(LOG_JSON_ENV, "false").lower() in {"1", "true", "yes", "on"}


def _bridge_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLineFormatter() if _json_enabled() else logging.Formatter(TEXT_FORMAT))
        root.addHandler(handler)
    root.setLevel(_level_from_env(LOG_LEVEL_ENV))
    return root


def get_logger(component: str) -> logging.Logger:
    """Logger for one part of the bridge, e.g. ``get_logger("square")`` -> ``bridge.square``.

    The ``requests`` component follows BRIDGE_REQUEST_LOG_LEVEL when it is set;
    everything else inherits BRIDGE_LOG_LEVEL from the parent.
    """
    logger = _bridge_root().getChild(component)
    if component == REQUEST_COMPONENT and os.getenv(REQUEST_LOG_LEVEL_ENV):
        logger.setLevel(_level_from_env(REQUEST_LOG_LEVEL_ENV))
    return logger
