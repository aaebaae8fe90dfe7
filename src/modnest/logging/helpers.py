from __future__ import annotations

"""Logger naming, handler setup and structured context for modnest.

Every module logs through ``get_logger('<area>')`` which yields a child of
the ``modnest`` logger, so a single handler configured by
`setup_base_logger` governs the whole run.

Per-entry failures (a prune target missing, a merge that failed) are logged
through `log_with_context`, which attaches the path and the attempted action
to the record. The plain formatter prints them as ``key=value`` pairs after
the message; `JsonLogFormatter` emits them under ``ctx``.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

BASE_LOGGER_NAME = "modnest"
TRACE_ENV = "MODNEST_TRACE_IO"
PLAIN_FORMAT = "%(levelname)s: %(message)s"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    ctx = getattr(record, "context", None)
    return ctx if isinstance(ctx, dict) else {}


class PlainLogFormatter(logging.Formatter):
    """``LEVEL: message`` followed by any attached context as ``k=v`` pairs."""

    def __init__(self) -> None:
        super().__init__(PLAIN_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        ctx = _record_context(record)
        if ctx:
            text += " [" + " ".join(f"{k}={v}" for k, v in ctx.items()) + "]"
        return text


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: ts, level, module, msg, version and optional ctx."""

    def __init__(self) -> None:
        super().__init__()
        try:
            from modnest import __version__
            self._version = str(__version__)
        except ImportError:
            self._version = os.getenv("MODNEST_VERSION", "unknown")

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
            "version": self._version,
        }
        ctx = _record_context(record)
        if ctx:
            payload["ctx"] = ctx
        return json.dumps(payload, ensure_ascii=False, default=str)


def level_for(debug: bool) -> int:
    return logging.DEBUG if debug else logging.INFO


def setup_base_logger(
    *, json_logs: bool = False, level: int = logging.INFO, stream: Optional[TextIO] = None
) -> logging.Logger:
    """(Re)configure the ``modnest`` logger with exactly one stream handler.

    Handlers from an earlier call are dropped, so switching to --json-logs
    or to another stream takes effect immediately. Records do not propagate
    to the root logger.
    """
    import sys as _sys

    base = logging.getLogger(BASE_LOGGER_NAME)
    for h in list(base.handlers):
        base.removeHandler(h)
    handler = logging.StreamHandler(stream or _sys.stderr)
    handler.setFormatter(JsonLogFormatter() if json_logs else PlainLogFormatter())
    base.addHandler(handler)
    base.setLevel(level)
    base.propagate = False
    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``modnest`` or its child ``modnest.<name>``."""
    if not name or name == BASE_LOGGER_NAME:
        return logging.getLogger(BASE_LOGGER_NAME)
    if name.startswith(BASE_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}")


def log_with_context(logger: logging.Logger, level: int, msg: str, *args: Any, **ctx: Any) -> None:
    """Log *msg* with *ctx* attached as structured context."""
    logger.log(level, msg, *args, extra={"context": ctx})


def is_trace_io_enabled() -> bool:
    return os.getenv(TRACE_ENV) == "1"


def trace_io(logger: logging.Logger, message: str, **ctx: Any) -> None:
    """DEBUG-level filesystem/subprocess trace, emitted only with MODNEST_TRACE_IO=1."""
    if is_trace_io_enabled():
        log_with_context(logger, logging.DEBUG, message, **ctx)
