"""Structured logging and operation timing.

``setup_logging`` configures the root logger once at startup. ``timed`` wraps a
function so every call reports its duration and outcome to a
``TimingReporter``; the default reporter emits a structured record on the
``expense_api.metrics`` logger.
"""

import functools
import inspect
import json
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

STRUCTURED_FIELDS = (
    "operation",
    "duration_ms",
    "outcome",
    "method",
    "path",
    "status_code",
    "client",
    "error_code",
    "user_id",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in STRUCTURED_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_expense_api", False):
            root.removeHandler(existing)
    handler._expense_api = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


class TimingReporter(Protocol):
    def __call__(self, operation: str, duration_ms: float, success: bool) -> None: ...


metrics_logger = logging.getLogger("expense_api.metrics")


def log_timing(operation: str, duration_ms: float, success: bool) -> None:
    """Default reporter: one structured log record per call."""
    outcome = "success" if success else "failure"
    metrics_logger.log(
        logging.INFO if success else logging.WARNING,
        f"{operation} {outcome} in {duration_ms:.1f}ms",
        extra={"operation": operation, "duration_ms": round(duration_ms, 3), "outcome": outcome},
    )


def timed(operation: str, reporter: TimingReporter | None = None) -> Callable[[F], F]:
    """Return a decorator that times ``operation`` on every call.

    Works for plain and ``async`` functions. Exceptions are reported as a
    failure and re-raised unchanged.
    """
    report = reporter or log_timing

    def decorator(fn: F) -> F:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                try:
                    result = await fn(*args, **kwargs)
                except Exception:
                    report(operation, (time.perf_counter() - start) * 1000, False)
                    raise
                report(operation, (time.perf_counter() - start) * 1000, True)
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception:
                report(operation, (time.perf_counter() - start) * 1000, False)
                raise
            report(operation, (time.perf_counter() - start) * 1000, True)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
