import pytest
from fastapi.testclient import TestClient

from gateway.config import Settings
from gateway.main import create_app


@pytest.fixture
def make_client():
    """Build a TestClient around an app configured with the given settings."""

    def _make(**overrides):
        overrides.setdefault("APP_ENV", "dev")
        cfg = Settings(_env_file=None, **overrides)
        return TestClient(create_app(cfg))

    return _make


@pytest.fixture
def client(make_client):
    return make_client(
        APP_PORT=18789,
        ALLOW_ORIGINS=["https://control.example.com"],
    )
