"""
Wrappers for the host's uncaught-error hooks.

Each wrapper records one ``error`` event and then hands over to the original
handler, so default reporting still happens. Whatever the original handler
logs is not captured again.
"""
import asyncio
import sys
import threading
import traceback
from types import TracebackType
from typing import Any, Callable, Dict

from .console import suppress_capture

Capture = Callable[[str, Dict[str, Any]], Any]


def describe_exception(exc: BaseException | None, tb: TracebackType | None = None, prefix: str = "") -> Dict[str, Any]:
    """Message, innermost source location and formatted stack of an exception."""
    if exc is None:
        return {"message": prefix.rstrip(": ") or "Error", "stack": None}

    tb = tb if tb is not None else exc.__traceback__
    data: Dict[str, Any] = {"message": f"{prefix}{exc.__class__.__name__}: {exc}"}

    frames = traceback.extract_tb(tb) if tb is not None else []
    if frames:
        last = frames[-1]
        data["filename"] = last.filename
        data["lineno"] = last.lineno
        data["colno"] = getattr(last, "colno", None)
        data["stack"] = "".join(traceback.format_exception(type(exc), exc, tb))
    else:
        data["stack"] = None
    return data


def wrap_excepthook(original: Callable | None, capture: Capture) -> Callable:
    """Wrap a ``sys.excepthook``-style callable."""
    original = original or sys.__excepthook__

    def excepthook(exc_type, exc_value, exc_tb):
        capture("error", describe_exception(exc_value, exc_tb))
        with suppress_capture():
            return original(exc_type, exc_value, exc_tb)

    return excepthook


def wrap_threading_excepthook(original: Callable | None, capture: Capture) -> Callable:
    """Wrap a ``threading.excepthook``-style callable."""
    original = original or threading.__excepthook__

    def excepthook(args):
        capture("error", describe_exception(args.exc_value, args.exc_traceback))
        with suppress_capture():
            return original(args)

    return excepthook


def wrap_exception_handler(original: Callable | None, capture: Capture) -> Callable:
    """
    Wrap an asyncio loop exception handler.

    Covers task exceptions that were never retrieved. With no original
    handler the loop's default handler runs afterwards.
    """

    def handler(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]):
        exc = context.get("exception")
        if exc is not None:
            capture("error", describe_exception(exc, prefix="Unhandled task exception: "))
        else:
            capture("error", {"message": f"Unhandled task exception: {context.get('message', 'unknown')}", "stack": None})

        # The default handler logs the same failure to the "asyncio" logger
        with suppress_capture():
            if original is not None:
                return original(loop, context)
            return loop.default_exception_handler(context)

    return handler
