"""
Entry Point Tests

Tests for the application factory, startup banner and listener startup in
graphql_proxy/app/main.py.
"""

import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from graphql_proxy.app.main import AppState, create_app, run


def test_create_app_serves_only_proxy_paths(test_settings, auth_headers):
    """Test that the docs routes are off and nothing but the proxy paths is served"""
    app = create_app(test_settings)

    assert app.docs_url is None
    assert app.redoc_url is None
    assert app.openapi_url is None

    client = TestClient(app)
    for path in ["/docs", "/redoc", "/openapi.json", "/health", "/api"]:
        assert client.get(path).status_code == 404
        assert client.post(path, headers=auth_headers).status_code == 404

    assert client.get("/api/graphql").status_code == 405
    assert client.get("/api/auth/signin").status_code == 405


def test_create_app_keeps_settings_on_state(test_settings):
    """Test that each app carries its own state"""
    first = create_app(test_settings)
    second = create_app(test_settings)

    assert isinstance(first.state.app_state, AppState)
    assert first.state.app_state is not second.state.app_state
    assert first.state.app_state.settings is test_settings
    assert first.state.app_state.upstream_client is None


def test_startup_banner_is_logged(test_settings, caplog):
    """Test that startup logs the listening address and the upstream"""
    caplog.set_level(logging.INFO, logger="graphql_proxy")

    with TestClient(create_app(test_settings)):
        pass

    messages = [record.getMessage() for record in caplog.records]
    assert "Starting proxy server on http://localhost:8080" in messages
    assert "Proxying to: https://upstream.test" in messages


def test_startup_logs_configuration_warnings(test_settings, caplog):
    """Test that non-fatal configuration problems are logged at startup"""
    caplog.set_level(logging.INFO, logger="graphql_proxy")
    settings = test_settings.model_copy(update={"ALLOWED_ORIGINS": ""})

    with TestClient(create_app(settings)):
        pass

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("ALLOWED_ORIGINS" in message for message in warnings)


def test_unhandled_exception_returns_plain_500(test_settings, caplog):
    """Test that an unexpected error fails only the request, with CORS headers"""
    caplog.set_level(logging.INFO, logger="graphql_proxy")
    app = create_app(test_settings)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/boom")

    assert response.status_code == 500
    assert response.text == "Internal server error"
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert any(
        record.levelno == logging.ERROR and record.exc_info for record in caplog.records
    )


def test_run_starts_listener_with_settings(test_settings):
    """Test that run() hands the configured address to uvicorn"""
    settings = test_settings.model_copy(update={"PROXY_HOST": "127.0.0.1", "PROXY_PORT": 9999})

    with patch("graphql_proxy.app.main.uvicorn.run") as mock_run:
        run(settings)

    mock_run.assert_called_once()
    assert mock_run.call_args.kwargs["host"] == "127.0.0.1"
    assert mock_run.call_args.kwargs["port"] == 9999
    assert mock_run.call_args.kwargs["log_level"] == "info"


def test_run_bind_failure_is_fatal(test_settings, caplog):
    """Test that a bind failure logs critically and exits non-zero"""
    caplog.set_level(logging.INFO, logger="graphql_proxy")

    with patch("graphql_proxy.app.main.uvicorn.run", side_effect=SystemExit(1)):
        with pytest.raises(SystemExit) as exc_info:
            run(test_settings)

    assert exc_info.value.code == 1
    assert any(record.levelno == logging.CRITICAL for record in caplog.records)


def test_run_os_error_is_fatal(test_settings, caplog):
    """Test that an OSError escaping uvicorn also ends the process"""
    caplog.set_level(logging.INFO, logger="graphql_proxy")

    with patch(
        "graphql_proxy.app.main.uvicorn.run",
        side_effect=OSError(98, "Address already in use"),
    ):
        with pytest.raises(SystemExit) as exc_info:
            run(test_settings)

    assert exc_info.value.code == 1
    assert any("Address already in use" in record.getMessage() for record in caplog.records)
