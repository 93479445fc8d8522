"""In-memory event store adapter."""
from collections import deque
from heapq import merge
from itertools import count
from typing import Iterable, Iterator
import structlog
from .base import StoreAdapter
from ..event_models import StoredEvent

log = structlog.get_logger()

DEFAULT_CAPACITY = 1000


class SessionBuffer:
    """Bounded, arrival-ordered buffer that drops its oldest entries when full."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[tuple[int, StoredEvent]] = deque(maxlen=capacity)

    def append(self, seq: int, event: StoredEvent) -> bool:
        """Append an entry; returns True when an older entry was evicted."""
        evicted = len(self._entries) == self.capacity
        self._entries.append((seq, event))
        return evicted

    def entries(self) -> Iterator[tuple[int, StoredEvent]]:
        return iter(self._entries)

    @property
    def last(self) -> StoredEvent | None:
        return self._entries[-1][1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)


class InMemoryAdapter(StoreAdapter):
    """
    Process-local event store keyed by session.

    Each stored event gets a process-wide arrival number so the merged view
    over all sessions keeps true arrival order.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = capacity
        self._buffers: dict[str, SessionBuffer] = {}
        self._seq = count()
        self.evicted_total = 0

    def append(self, session: str, event: StoredEvent) -> int:
        buffer = self._buffers.get(session)
        if buffer is None:
            buffer = self._buffers[session] = SessionBuffer(self.capacity)
            log.info("session.created", session=session, capacity=self.capacity)
        if buffer.append(next(self._seq), event):
            self.evicted_total += 1
        return len(buffer)

    def events(self, session: str | None = None) -> Iterable[StoredEvent]:
        if session is not None:
            buffer = self._buffers.get(session)
            return [event for _, event in buffer.entries()] if buffer else []
        merged = merge(*(b.entries() for b in self._buffers.values()), key=lambda e: e[0])
        return [event for _, event in merged]

    def sessions(self) -> list[tuple[str, int, StoredEvent]]:
        return [
            (session_id, len(buffer), buffer.last)
            for session_id, buffer in self._buffers.items()
            if len(buffer)
        ]

    def total_events(self) -> int:
        return sum(len(b) for b in self._buffers.values())

    def session_count(self) -> int:
        return len(self._buffers)
