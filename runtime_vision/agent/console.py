"""Capture of log output as ``console`` events."""
import contextlib
import functools
import logging
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterable

import orjson

Capture = Callable[[str, Dict[str, Any]], Any]

MESSAGE_MAX_CHARS = 500
CONSOLE_LEVELS = ("log", "warn", "warning", "error", "info", "debug", "critical", "exception")

# Loggers whose records are never captured (the agent's own output)
AGENT_LOGGER_PREFIX = "runtime_vision.agent"

# Set while the agent itself produces output (deliveries, handed-over error
# reports). Context-local, so each delivery task only silences itself.
_suppressed: ContextVar[bool] = ContextVar("runtime_vision_capture_suppressed", default=False)


@contextlib.contextmanager
def suppress_capture():
    """Skip console capture for log output produced inside this block."""
    token = _suppressed.set(True)
    try:
        yield
    finally:
        _suppressed.reset(token)


def render_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return orjson.dumps(value).decode()
    except TypeError:
        return str(value)


def render_message(args: Iterable[Any], kwargs: Dict[str, Any] | None = None) -> str:
    """Join all arguments with spaces, objects as JSON, cut to 500 characters."""
    parts = [render_value(a) for a in args]
    if kwargs:
        parts.append(render_value(kwargs))
    return " ".join(parts)[:MESSAGE_MAX_CHARS]


class InstrumentedConsole:
    """
    Proxy around a logger-like object.

    Level methods still run on the original first; each call then yields one
    ``console`` event. Every other attribute is delegated untouched.
    """

    def __init__(self, original: Any, capture: Capture, levels: Iterable[str] = CONSOLE_LEVELS):
        self._original = original
        self._capture = capture
        for level in levels:
            method = getattr(original, level, None)
            if callable(method):
                setattr(self, level, self._wrap(level, method))

    def _wrap(self, level: str, method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(*args, **kwargs):
            result = method(*args, **kwargs)
            if _suppressed.get():
                return result
            name = level
            # logging.Logger.log(level, msg, ...) takes the level first
            if level == "log" and args and isinstance(args[0], int) and not isinstance(args[0], bool):
                name = logging.getLevelName(args[0]).lower()
                args = args[1:]
            self._capture("console", {"level": name, "message": render_message(args, kwargs)})
            return result

        return wrapper

    def __getattr__(self, name: str) -> Any:
        return getattr(self._original, name)


class ConsoleCaptureHandler(logging.Handler):
    """Logging handler that turns every emitted record into a ``console`` event."""

    def __init__(self, capture: Capture, level: int = logging.NOTSET):
        super().__init__(level)
        self._capture = capture

    def emit(self, record: logging.LogRecord) -> None:
        if _suppressed.get() or record.name.startswith(AGENT_LOGGER_PREFIX):
            return
        try:
            message = record.getMessage()
        except Exception:
            self.handleError(record)
            return
        self._capture("console", {"level": record.levelname.lower(), "message": message[:MESSAGE_MAX_CHARS]})
