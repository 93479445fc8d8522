"""Query parameter parsing and per-event summaries for /context."""
import re
from typing import Any, Iterable

import orjson

from ..event_models import StoredEvent

DEFAULT_SINCE_MS = 5 * 60 * 1000
DEFAULT_LIMIT = 100
SUMMARY_MAX_CHARS = 100

_SINCE_PATTERN = re.compile(r"^(\d+)([smhd])$")
_UNIT_MS = {
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}


def parse_since(expr: str | None, default_ms: int = DEFAULT_SINCE_MS) -> int:
    """
    Parse a relative window such as "30s", "5m", "2h" or "1d" into milliseconds.

    Malformed or missing expressions fall back to ``default_ms``.
    """
    if not expr:
        return default_ms
    match = _SINCE_PATTERN.match(expr.strip())
    if not match:
        return default_ms
    value, unit = match.groups()
    return int(value) * _UNIT_MS[unit]


def parse_types(csv: str | None) -> frozenset[str] | None:
    """Comma-separated type tags; None when no usable tag is given."""
    if not csv:
        return None
    types = frozenset(t.strip() for t in csv.split(",") if t.strip())
    return types or None


def parse_limit(raw: str | int | None, default: int = DEFAULT_LIMIT) -> int:
    try:
        limit = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default
    return limit if limit > 0 else default


def filter_events(
    events: Iterable[StoredEvent],
    cutoff: int,
    types: frozenset[str] | None,
    limit: int,
) -> list[StoredEvent]:
    """
    Keep events with ``ts >= cutoff`` and a matching type, then the last
    ``limit`` of them in arrival order.
    """
    eligible = [
        e for e in events
        if _is_number(e.ts) and e.ts >= cutoff and (types is None or (isinstance(e.type, str) and e.type in types))
    ]
    return eligible[-limit:]


def summarize(event: StoredEvent) -> str:
    """One-line human-readable rendering of an event."""
    data = event.data if isinstance(event.data, dict) else {}

    if event.type == "net":
        status = data.get("status") or "?"
        return f"{data.get('method') or 'GET'} {data.get('url')} → {status}"
    if event.type == "console":
        return f"{data.get('level') or 'log'}: {data.get('message') or ''}"[:SUMMARY_MAX_CHARS]
    if event.type == "error":
        return f"{data.get('message') or 'Error'}"[:SUMMARY_MAX_CHARS]
    return _render_json(event.data if event.data is not None else {})[:SUMMARY_MAX_CHARS]


def _render_json(value: Any) -> str:
    try:
        return orjson.dumps(value).decode()
    except TypeError:
        return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
