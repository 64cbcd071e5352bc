import pytest
from fastapi.testclient import TestClient

from health_dashboard.main import create_app
from tests.fakes import FIXED_NOW, FakeUpstream, make_settings


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def make_client(upstream):
    def _make(**overrides):
        app = create_app(make_settings(**overrides), transport=upstream.transport, clock=lambda: FIXED_NOW)
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()
