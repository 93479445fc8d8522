from fastapi import APIRouter, Depends, Request
import orjson
from .deps import get_store
from .schemas import ContextResponse, IngestResponse, SessionListResponse
from ..errors import MalformedEventError
from ..services.event_store import EventStore

router = APIRouter()


@router.post("/events", status_code=202, response_model=IngestResponse)
async def ingest_event(request: Request, store: EventStore = Depends(get_store)):
    body = await request.body()
    try:
        payload = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise MalformedEventError(f"Invalid JSON: {e}") from e

    result = store.ingest(payload, size_bytes=len(body))
    return IngestResponse(sessionEvents=result.session_events)


@router.get("/context", response_model=ContextResponse)
async def get_context(
    session: str | None = None,
    since: str | None = None,
    types: str | None = None,
    limit: str | None = None,
    store: EventStore = Depends(get_store),
):
    result = store.query(session=session, since=since, types=types, limit=limit)
    return ContextResponse(
        session=result.session,
        count=result.count,
        summaries=result.summaries(),
        events=[e.to_wire() for e in result.events],
    )


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(store: EventStore = Depends(get_store)):
    return SessionListResponse(sessions=store.list_sessions())
