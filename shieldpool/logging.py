"""
shieldpool.logging
------------------

Structured logging for the shielded-pool core:
- JSON or concise text formats
- Structured extras (passed via `extra={...}`) rendered inline or as JSON keys
- Simple, dependency-free setup (stdlib only)

Usage
-----
    from shieldpool import logging as slog

    slog.configure(json=False, level="INFO")  # once at process start
    log = slog.get_logger("shieldpool.notes")
    log.info("note saved", extra={"commitment": "0x..."})

Every module in this package logs through a `shieldpool.*` logger; nothing is
emitted unless the host application (or `configure`) attaches a handler.
"""

from __future__ import annotations

import datetime as _dt
import json as _json
import logging
import sys
import traceback
from typing import Any, Dict, Optional, TextIO

ROOT_LOGGER = "shieldpool"

_RESERVED = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "taskName", "message", "asctime",
    )
)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        # big field elements stay readable in JSON consumers that lose int precision
        if isinstance(v, int) and not isinstance(v, bool) and v.bit_length() > 53:
            return str(v)
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    return str(v)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RESERVED
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return _json.dumps(payload, separators=(",", ":"), default=str)


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | INFO  | shieldpool.notes | owner=ab12 | note saved
    """

    def format(self, record: logging.LogRecord) -> str:
        extras = " ".join(f"{k}={v}" for k, v in _extras(record).items())
        line = f"{_utcnow_iso()} | {record.levelname:<5} | {record.name}"
        if extras:
            line += f" | {extras}"
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level {level!r}")
    return value


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int | None = None,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """
    Attach a single console handler to the `shieldpool` logger.

    Parameters
    ----------
    json : bool | None
        If None, taken from `load_config().log` (SHIELDPOOL_LOG_FORMAT).
    level : str | int | None
        Minimum level; if None, taken from `load_config().log` (SHIELDPOOL_LOG_LEVEL).
    stream : TextIO
        Stream for the console handler (default: stderr).

    Calling this repeatedly replaces the previous handler rather than stacking.
    """
    if json is None or level is None:
        from .config import load_config

        log_cfg = load_config().log
        json = log_cfg.json if json is None else json
        level = log_cfg.level if level is None else level

    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        if getattr(h, "_shieldpool_handler", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter() if json else TextFormatter())
    handler._shieldpool_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(_coerce_level(level))
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a logger under the `shieldpool` namespace."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


__all__ = ["configure", "get_logger", "JSONFormatter", "TextFormatter", "ROOT_LOGGER"]
