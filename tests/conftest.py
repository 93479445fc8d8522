import pytest
from fastapi.testclient import TestClient

from runtime_vision.config import Settings
from runtime_vision.main import create_app
from runtime_vision.metrics import Metrics
from runtime_vision.services.event_store import EventStore


@pytest.fixture
def metrics():
    return Metrics()


@pytest.fixture
def store(metrics):
    return EventStore(metrics=metrics)


@pytest.fixture
def app(store):
    return create_app(Settings(), store=store)


@pytest.fixture
def client(app):
    return TestClient(app)
