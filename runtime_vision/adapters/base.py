"""Base adapter interface for event store backends."""
from abc import ABC, abstractmethod
from typing import Iterable
from ..event_models import StoredEvent


class StoreAdapter(ABC):
    """Abstract interface for session-buffered event storage."""

    #: Events dropped from full buffers since startup
    evicted_total: int = 0

    @abstractmethod
    def append(self, session: str, event: StoredEvent) -> int:
        """
        Append an event to a session's buffer.

        Args:
            session: Session identifier
            event: The event to store

        Returns:
            Buffer length for that session after the append
        """

    @abstractmethod
    def events(self, session: str | None = None) -> Iterable[StoredEvent]:
        """
        Events in arrival order.

        Args:
            session: Restrict to one session; None merges all sessions

        Returns:
            Iterable of stored events, oldest arrival first
        """

    @abstractmethod
    def sessions(self) -> list[tuple[str, int, StoredEvent]]:
        """(session id, event count, last arrived event) for non-empty buffers."""

    @abstractmethod
    def total_events(self) -> int:
        """Total number of events held across all sessions."""

    @abstractmethod
    def session_count(self) -> int:
        """Number of distinct sessions seen."""
