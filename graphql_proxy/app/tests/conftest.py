"""Shared fixtures for the proxy tests."""

import httpx
import pytest
from fastapi.testclient import TestClient

from graphql_proxy.app.config import Settings
from graphql_proxy.app.main import create_app

from .upstream_stubs import UPSTREAM_AUTH_URL, UPSTREAM_GRAPHQL_URL, UpstreamRecorder


@pytest.fixture
def test_settings():
    """Settings pointing at the simulated upstream"""
    return Settings(
        UPSTREAM_AUTH_URL=UPSTREAM_AUTH_URL,
        UPSTREAM_GRAPHQL_URL=UPSTREAM_GRAPHQL_URL,
        ALLOWED_ORIGINS="*",
        LOG_LEVEL="INFO",
    )


@pytest.fixture
def upstream():
    """Recorder standing in for the upstream API"""
    return UpstreamRecorder()


@pytest.fixture
def app(test_settings, upstream):
    """Create test FastAPI application wired to the simulated upstream"""
    app = create_app(test_settings)
    app.state.app_state.upstream_client = httpx.AsyncClient(
        transport=httpx.MockTransport(upstream)
    )
    return app


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Standard authorization headers for forwarded requests"""
    return {"Authorization": "Bearer abc"}
