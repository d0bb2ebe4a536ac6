"""Utility helpers for m2perf."""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

LOG_LEVEL_ENV = "M2PERF_LOG_LEVEL"
_ROOT_LOGGER = "m2perf"


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def json_dump(obj: Any) -> str:
    return json.dumps(obj, indent=2, sort_keys=True, default=_json_default)


def _json_default(obj: Any) -> Any:  # pragma: no cover - fallback for datetime etc.
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, MappingProxyType):
        return dict(obj)
    if hasattr(obj, "__dict__"):
        return obj.__dict__
    return str(obj)


def env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_level() -> int:
    raw = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if raw:
        return getattr(logging, raw, logging.WARNING)
    return logging.WARNING


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Set the m2perf logger level; CLI flags override the environment."""

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = _env_level()
    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("[m2perf] %(message)s"))
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    if name.startswith(f"{_ROOT_LOGGER}.") or name == _ROOT_LOGGER:
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


__all__ = ["configure_logging", "env_bool", "get_logger", "json_dump", "now_utc"]
