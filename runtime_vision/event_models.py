from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict
import time

SCHEMA_VERSION = 1
DEFAULT_SESSION = "default"


def now_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


class Event(BaseModel):
    """One captured occurrence, as produced by the agent."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Event type tag: net, console, error or custom")
    data: Dict[str, Any] = Field(default_factory=dict)
    ts: int = Field(default_factory=now_ms, description="Capture time, ms since epoch")
    session: str = DEFAULT_SESSION
    v: int = SCHEMA_VERSION


class StoredEvent(BaseModel):
    """
    Event as held by the collector.

    Field values are kept exactly as decoded, whatever their JSON kind, and
    unknown keys are kept too, so an event reads back as it was sent.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: Any = None
    data: Any = None
    ts: Any = None
    session: Any = None
    v: Any = None

    @property
    def session_key(self) -> str:
        if not self.session:
            return DEFAULT_SESSION
        return self.session if isinstance(self.session, str) else str(self.session)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)
