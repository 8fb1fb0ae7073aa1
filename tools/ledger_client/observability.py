"""
Ledger Client Observability

Structured logging for the ledger client. Every record carries the
correlation id of the workflow invocation that produced it, the layer it was
emitted from and free-form context.

    logger.info("msg", contract_id=x)
            │
    LedgerLogger          correlation id, layer, structured context
            │
    StructuredHandler     one JSON object (or text line) per record on stderr

Level and format are read from LEDGER_CLIENT_LOG_LEVEL and
LEDGER_CLIENT_LOG_FORMAT on every call, so they follow the environment of
the invocation rather than of the import.

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
import traceback
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

from tools.ledger_client.config import logging_settings

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


class LedgerLayer(Enum):
    """Client layers for categorization."""
    CONFIG = "config"
    SESSION = "session"
    TRANSPORT = "transport"
    EXECUTION = "execution"
    VALIDATION = "validation"
    CLI = "cli"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    correlation_id: str = ""
    layer: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_text(self) -> str:
        line = f"{self.timestamp} {self.level.upper()} {self.logger}: {self.message}"
        if self.context:
            line += " " + " ".join(f"{k}={v}" for k, v in self.context.items())
        if self.exception:
            line += "\n" + self.exception.rstrip("\n")
        return line


class StructuredHandler(logging.Handler):
    """Logging handler that writes structured events to a stream."""

    def __init__(self, stream: Any = None, fmt: str = "json"):
        super().__init__()
        self.stream = stream
        self.fmt = fmt

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                correlation_id=correlation_id_var.get(),
                layer=getattr(record, "layer", ""),
                operation=getattr(record, "operation", ""),
                duration_ms=getattr(record, "duration_ms", None),
                error_code=getattr(record, "error_code", ""),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            # Resolved per record so redirected stderr is honoured.
            stream = self.stream or sys.stderr
            stream.write((event.to_text() if self.fmt == "text" else event.to_json()) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


class LedgerLogger:
    """
    Structured logger for ledger client components.

    Includes the correlation id and layer in every event.
    """

    def __init__(self, name: str, layer: LedgerLayer):
        self.name = name
        self.layer = layer
        self._logger = logging.getLogger(f"ledger_client.{layer.value}.{name}")

        self._handler = next(
            (h for h in self._logger.handlers if isinstance(h, StructuredHandler)),
            None,
        )
        if self._handler is None:
            self._handler = StructuredHandler()
            self._logger.addHandler(self._handler)

    def _apply_settings(self) -> None:
        settings = logging_settings()
        self._logger.setLevel(getattr(logging, settings["log_level"].upper()))
        self._handler.fmt = settings["log_format"]

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._apply_settings()
        extra = {
            "layer": self.layer.value,
            "operation": operation,
            "error_code": error_code,
            "duration_ms": duration_ms,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)

    def operation(
        self,
        name: str,
        duration_ms: float,
        success: bool = True,
        **context: Any,
    ) -> None:
        """Log an operation completion at debug level."""
        status = "completed" if success else "failed"
        self._log(
            logging.DEBUG,
            f"Operation {name} {status}",
            operation=name,
            duration_ms=duration_ms,
            **context,
        )


def generate_correlation_id() -> str:
    return f"corr-{uuid.uuid4().hex[:12]}"


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    return correlation_id_var.set(correlation_id)


def reset_correlation_id(token: contextvars.Token) -> None:
    correlation_id_var.reset(token)


def get_logger(name: str, layer: LedgerLayer) -> LedgerLogger:
    """Get a logger for a ledger client component."""
    return LedgerLogger(name, layer)


T = TypeVar("T")


def timed_operation(
    logger: LedgerLogger,
    operation_name: str,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for timing and logging operations."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            success = True
            try:
                return func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                duration_ms = (time.monotonic() - start) * 1000
                logger.operation(operation_name, duration_ms, success)
        return wrapper
    return decorator
