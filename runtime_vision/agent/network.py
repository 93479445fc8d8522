"""
httpx transport wrappers that record one ``net`` event per request.

The wrapped transport's response is returned unchanged and its exceptions
propagate unchanged; recording is a side channel.
"""
import time
from typing import Any, Callable, Dict

import httpx

Capture = Callable[[str, Dict[str, Any]], Any]


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def describe_response(request: httpx.Request, response: httpx.Response, started: float) -> Dict[str, Any]:
    return {
        "method": request.method,
        "url": str(request.url),
        "status": response.status_code,
        "statusText": response.reason_phrase,
        "dur_ms": _elapsed_ms(started),
    }


def describe_failure(request: httpx.Request, exc: BaseException, started: float) -> Dict[str, Any]:
    return {
        "method": request.method,
        "url": str(request.url),
        "error": str(exc) or exc.__class__.__name__,
        "dur_ms": _elapsed_ms(started),
    }


class InstrumentedAsyncTransport(httpx.AsyncBaseTransport):
    """Wraps the awaitable transport used by ``httpx.AsyncClient``."""

    def __init__(self, wrapped: httpx.AsyncBaseTransport, capture: Capture):
        self._wrapped = wrapped
        self._capture = capture

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        started = time.monotonic()
        try:
            response = await self._wrapped.handle_async_request(request)
        except Exception as e:
            self._capture("net", describe_failure(request, e, started))
            raise
        self._capture("net", describe_response(request, response, started))
        return response

    async def aclose(self) -> None:
        await self._wrapped.aclose()


class InstrumentedTransport(httpx.BaseTransport):
    """Wraps the blocking transport used by ``httpx.Client``."""

    def __init__(self, wrapped: httpx.BaseTransport, capture: Capture):
        self._wrapped = wrapped
        self._capture = capture

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        started = time.monotonic()
        try:
            response = self._wrapped.handle_request(request)
        except Exception as e:
            self._capture("net", describe_failure(request, e, started))
            raise
        self._capture("net", describe_response(request, response, started))
        return response

    def close(self) -> None:
        self._wrapped.close()
