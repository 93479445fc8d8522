"""Request dependencies resolving the application-owned components."""
from fastapi import Request
from ..services.event_store import EventStore


def get_store(request: Request) -> EventStore:
    return request.app.state.store
