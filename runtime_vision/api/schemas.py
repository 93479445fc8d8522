from pydantic import BaseModel
from typing import Any, Dict, List


class IngestResponse(BaseModel):
    status: str = "accepted"
    sessionEvents: int


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str


class EventSummary(BaseModel):
    ts: Any
    type: Any
    summary: str


class ContextResponse(BaseModel):
    session: str
    count: int
    summaries: List[EventSummary]
    events: List[Dict[str, Any]]


class SessionInfo(BaseModel):
    sessionId: str
    eventCount: int
    lastEvent: Any


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]


class HealthResponse(BaseModel):
    status: str = "ok"
    uptime: float
    sessions: int
    totalEvents: int
