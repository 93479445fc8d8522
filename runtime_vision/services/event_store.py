"""Event store service: ingestion, filtered queries and session listing."""
from dataclasses import dataclass
from typing import Any, Callable
import structlog
from ..adapters.base import StoreAdapter
from ..adapters.memory import InMemoryAdapter, DEFAULT_CAPACITY
from ..errors import MalformedEventError
from ..event_models import StoredEvent, now_ms
from ..metrics import Metrics
from .query import filter_events, parse_limit, parse_since, parse_types, summarize

log = structlog.get_logger()


@dataclass(frozen=True)
class IngestResult:
    session: str
    session_events: int


@dataclass(frozen=True)
class ContextResult:
    session: str
    events: list[StoredEvent]

    @property
    def count(self) -> int:
        return len(self.events)

    def summaries(self) -> list[dict[str, Any]]:
        return [{"ts": e.ts, "type": e.type, "summary": summarize(e)} for e in self.events]


class EventStore:
    """
    Owns the per-session event buffers for the lifetime of the process.

    All mutations happen synchronously inside ``ingest`` so concurrent
    requests interleave only between whole appends.
    """

    def __init__(
        self,
        adapter: StoreAdapter | None = None,
        metrics: Metrics | None = None,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], int] = now_ms,
        default_since: str = "5m",
        default_limit: int = 100,
    ):
        """
        Initialize the event store.

        Args:
            adapter: Storage backend (defaults to an in-memory adapter)
            metrics: Optional Prometheus metrics to update on ingest
            capacity: Per-session buffer capacity for the default adapter
            clock: Millisecond clock used for server-side timestamps and cutoffs
            default_since: Window used when a query gives no valid ``since``
            default_limit: Result cap used when a query gives no valid ``limit``
        """
        self._adapter = adapter if adapter is not None else InMemoryAdapter(capacity)
        self._metrics = metrics
        self._clock = clock
        self._default_since_ms = parse_since(default_since)
        self._default_limit = default_limit

    def ingest(self, payload: Any, size_bytes: int = 0) -> IngestResult:
        """
        Store one decoded event body.

        Any JSON object is accepted and kept as sent; only a missing or falsy
        ``ts`` is filled in with server time.

        Raises:
            MalformedEventError: payload is not a JSON object
        """
        if not isinstance(payload, dict):
            raise MalformedEventError("Event must be a JSON object")

        if _missing_timestamp(payload.get("ts")):
            payload = {**payload, "ts": self._clock()}

        event = StoredEvent.model_validate(payload)
        session = event.session_key
        evicted_before = self._adapter.evicted_total
        session_events = self._adapter.append(session, event)

        if self._metrics is not None:
            evicted = self._adapter.evicted_total - evicted_before
            self._metrics.record_event_ingested(event.type, size_bytes, evicted)
            self._metrics.set_store_size(self._adapter.session_count(), self._adapter.total_events())

        log.info("event.stored", type=event.type, session=session, session_events=session_events)
        return IngestResult(session=session, session_events=session_events)

    def query(
        self,
        session: str | None = None,
        since: str | None = None,
        types: str | None = None,
        limit: str | int | None = None,
    ) -> ContextResult:
        """Filter by time window and type, then keep the newest ``limit`` arrivals."""
        cutoff = self._clock() - parse_since(since, self._default_since_ms)
        events = filter_events(
            self._adapter.events(session or None),
            cutoff=cutoff,
            types=parse_types(types),
            limit=parse_limit(limit, self._default_limit),
        )
        log.debug("context.queried", session=session, cutoff=cutoff, count=len(events))
        return ContextResult(session=session or "all", events=events)

    def list_sessions(self) -> list[dict[str, Any]]:
        return [
            {"sessionId": session_id, "eventCount": count, "lastEvent": last.ts}
            for session_id, count, last in self._adapter.sessions()
        ]

    def session_count(self) -> int:
        return self._adapter.session_count()

    def total_events(self) -> int:
        return self._adapter.total_events()


def _missing_timestamp(ts: Any) -> bool:
    # Empty containers are real values and are kept
    if isinstance(ts, (list, dict)):
        return False
    return not ts
