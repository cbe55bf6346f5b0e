"""
Structured logging for ledger stores.

Records are dicts rendered either as one JSON object per line or as
``message key=value ...`` text. A store binds its ledger name and the
current operation into a ``LogContext`` so every record of one drain
carries the same trace id.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Log Record Types
# =============================================================================


@dataclass(frozen=True)
class LogContext:
    """Fields stamped onto every record emitted inside a trace."""

    trace_id: str | None = None
    ledger: str | None = None
    operation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class DrainLog:
    """Log record for a drain-and-reset."""

    ledger: str
    removed: int = 0
    emitted: int = 0
    discarded: int = 0
    failed: int = 0

    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger:
    """
    Wrapper over a stdlib logger that emits structured ledger records.

    Example:
        ```python
        logger = StructuredLogger("quota_ledger", level="DEBUG")

        with logger.trace_context(ledger="node", operation="drain_and_reset"):
            logger.warning("Discarded node accounts outside membership", discarded=2)
        ```
    """

    def __init__(
        self,
        name: str = "quota_ledger",
        level: str = "INFO",
        json_output: bool = True,
    ):
        self.name = name
        self._logger = logging.getLogger(name)
        # Per-thread, so concurrent drains sharing a logger keep their own trace.
        self._local = threading.local()

        # Attach a stdout handler only to loggers nobody has configured yet.
        self._handler: logging.Handler | None = None
        if not self._logger.handlers:
            self._handler = logging.StreamHandler(sys.stdout)
            self._logger.addHandler(self._handler)

        self.json_output = json_output
        self.apply(level=level, json_output=json_output)

    @property
    def context(self) -> LogContext:
        return getattr(self._local, "context", None) or LogContext()

    @property
    def level(self) -> str:
        return logging.getLevelName(self._logger.level)

    def apply(self, *, level: str, json_output: bool) -> None:
        """Switch level and output format in place."""
        level = level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        self._logger.setLevel(level)
        self.json_output = json_output
        if self._handler is not None:
            self._handler.setFormatter(JSONFormatter() if json_output else TextFormatter())

    @contextmanager
    def trace_context(
        self,
        *,
        ledger: str | None = None,
        operation: str | None = None,
        trace_id: str | None = None,
    ) -> Iterator[str]:
        """Bind ledger/operation fields and a trace id until the block exits."""
        previous = self.context
        trace_id = trace_id or new_trace_id()
        self._local.context = replace(
            previous,
            trace_id=trace_id,
            ledger=ledger or previous.ledger,
            operation=operation or previous.operation,
        )
        try:
            yield trace_id
        finally:
            self._local.context = previous

    def _emit(
        self,
        level: int,
        message: str,
        fields: dict[str, Any],
        event_type: str | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return

        record = {"message": message, **self.context.to_dict()}
        if event_type:
            record["event_type"] = event_type
        record.update(fields)

        if self.json_output:
            self._logger.log(level, json.dumps(record, default=str))
        else:
            pairs = " ".join(f"{k}={v}" for k, v in record.items() if k != "message")
            self._logger.log(level, f"{message} {pairs}".rstrip())

    def debug(self, message: str, **fields) -> None:
        self._emit(logging.DEBUG, message, fields)

    def warning(self, message: str, **fields) -> None:
        self._emit(logging.WARNING, message, fields)

    def log_drain(self, drain: DrainLog) -> None:
        """Log a completed drain-and-reset."""
        self._emit(
            logging.INFO,
            f"Drained {drain.ledger} ledger: {drain.emitted}/{drain.removed} emitted",
            drain.to_dict(),
            event_type="drain",
        )

    def log_error(self, error: Exception, message: str | None = None, **fields) -> None:
        """Log an exception, with its ledger error code and context when present."""
        data: dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        code = getattr(error, "code", None)
        if code is not None:
            data["error_code"] = str(code.value)
        context = getattr(error, "context", None)
        if context:
            data["error_context"] = context.to_dict()
        data.update(fields)

        self._emit(logging.ERROR, message or f"Error: {error}", data, event_type="error")


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per record; structured messages are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        out: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        try:
            parsed = json.loads(message)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            out.update(parsed)
        else:
            out["message"] = message

        if record.exc_info:
            out["exception"] = self.formatException(record.exc_info)
        return json.dumps(out)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL message`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        line = f"{stamp} {record.levelname:8} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def new_trace_id() -> str:
    return f"trace_{uuid.uuid4().hex[:16]}"


# =============================================================================
# Logger registry
# =============================================================================

_loggers: dict[str, StructuredLogger] = {}


def get_logger(
    name: str = "quota_ledger",
    *,
    level: str = "INFO",
    json_output: bool = True,
) -> StructuredLogger:
    """Return the logger for ``name``, reapplying ``level`` and format."""
    logger = _loggers.get(name)
    if logger is None:
        logger = _loggers[name] = StructuredLogger(name, level=level, json_output=json_output)
    else:
        logger.apply(level=level, json_output=json_output)
    return logger


__all__ = [
    "LogContext",
    "DrainLog",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "new_trace_id",
    "get_logger",
]
