"""Tests for /context filtering, parameter parsing and summaries."""
import pytest
from runtime_vision.event_models import StoredEvent
from runtime_vision.services.event_store import EventStore
from runtime_vision.services.query import parse_limit, parse_since, parse_types, summarize

NOW = 1_700_000_000_000
MINUTE = 60 * 1000


def fixed_clock():
    return NOW


@pytest.mark.parametrize(
    "expr,expected",
    [
        ("30s", 30 * 1000),
        ("5m", 5 * MINUTE),
        ("2h", 2 * 60 * MINUTE),
        ("1d", 24 * 60 * MINUTE),
        ("", 5 * MINUTE),
        (None, 5 * MINUTE),
        ("5 minutes", 5 * MINUTE),
        ("-5m", 5 * MINUTE),
        ("10w", 5 * MINUTE),
    ],
)
def test_parse_since(expr, expected):
    assert parse_since(expr) == expected


def test_parse_types_and_limit():
    assert parse_types("net, error,,") == frozenset({"net", "error"})
    assert parse_types(",") is None
    assert parse_types(None) is None
    assert parse_limit("7") == 7
    assert parse_limit("abc") == 100
    assert parse_limit("0") == 100
    assert parse_limit(None, default=25) == 25


def test_since_window_excludes_older_events():
    store = EventStore(clock=fixed_clock)
    store.ingest({"type": "net", "ts": NOW - 6 * MINUTE, "data": {"url": "/old"}})
    store.ingest({"type": "net", "ts": NOW - 4 * MINUTE, "data": {"url": "/recent"}})

    result = store.query(since="5m")

    assert result.count == 1
    assert result.events[0].data["url"] == "/recent"


def test_types_filter_keeps_only_requested_types():
    store = EventStore(clock=fixed_clock)
    store.ingest({"type": "net", "ts": NOW, "data": {}})
    store.ingest({"type": "error", "ts": NOW, "data": {"message": "boom"}})

    result = store.query(types="error")

    assert [e.type for e in result.events] == ["error"]


def test_limit_keeps_most_recent_arrivals_after_filtering():
    store = EventStore(clock=fixed_clock)
    for i in range(3):
        store.ingest({"type": "console", "ts": NOW, "data": {"message": f"m{i}"}})
    store.ingest({"type": "net", "ts": NOW, "data": {}})

    result = store.query(types="console", limit="1")

    assert result.count == 1
    assert result.events[0].data["message"] == "m2"


def test_query_session_scope_and_label():
    store = EventStore(clock=fixed_clock)
    store.ingest({"type": "net", "ts": NOW, "session": "a"})
    store.ingest({"type": "net", "ts": NOW, "session": "b"})

    assert store.query(session="a").count == 1
    assert store.query(session="a").session == "a"
    assert store.query().count == 2
    assert store.query().session == "all"
    assert store.query(session="nope").count == 0


def test_summaries_follow_event_type():
    store = EventStore(clock=fixed_clock)
    store.ingest({"type": "net", "ts": NOW, "data": {"method": "POST", "url": "/api", "status": 201}})

    summaries = store.query().summaries()

    assert summaries == [{"ts": NOW, "type": "net", "summary": "POST /api → 201"}]


def test_summarize_network_defaults():
    event = StoredEvent(type="net", data={"url": "/x", "error": "refused"})
    assert summarize(event) == "GET /x → ?"


def test_summarize_console_and_error_truncate():
    console = StoredEvent(type="console", data={"level": "warn", "message": "x" * 200})
    error = StoredEvent(type="error", data={"message": "e" * 200})

    assert summarize(console) == ("warn: " + "x" * 200)[:100]
    assert len(summarize(error)) == 100
    assert summarize(StoredEvent(type="error", data={})) == "Error"
    assert summarize(StoredEvent(type="console", data={})) == "log: "


def test_summarize_custom_type_renders_data_as_json():
    event = StoredEvent(type="checkout", data={"cart": 3, "ok": True})
    assert summarize(event) == '{"cart":3,"ok":true}'
    assert summarize(StoredEvent(type="custom")) == "{}"
    assert len(summarize(StoredEvent(type="big", data={"k": "v" * 300}))) == 100
