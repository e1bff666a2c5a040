"""Shared fixtures: one backend per storage strategy and a test client."""

import pytest
from fastapi.testclient import TestClient

from rsvp_collector.app.main import create_app
from rsvp_collector.app.services.rsvp_service import RsvpService
from rsvp_collector.app.storage import JsonFileBackend, SqliteBackend

from .fixtures import FakeClock, make_settings


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["json", "sqlite"])
def backend(request, tmp_path, clock):
    """An initialised backend; every test using it runs for both strategies."""
    if request.param == "json":
        instance = JsonFileBackend(tmp_path / "data" / "rsvps.json", clock=clock)
    else:
        instance = SqliteBackend(tmp_path / "data" / "rsvps.db", clock=clock)
    instance.initialize()
    return instance


@pytest.fixture
def service(backend, clock):
    return RsvpService(backend, clock=clock)


@pytest.fixture(params=["json", "sqlite"])
def client(request, tmp_path):
    app = create_app(make_settings(tmp_path, request.param))
    with TestClient(app) as test_client:
        yield test_client
