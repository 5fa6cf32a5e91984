"""
Unit tests for server exception handlers.

Tests cover domain error mapping, the global handler for unexpected errors,
and handler registration on a FastAPI application.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from codexalpha.core.errors import (
    AIProviderError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from codexalpha.server.exception_handlers import setup_exception_handlers
from codexalpha.server.exception_handlers.global_handler import (
    codexalpha_error_handler,
    global_exception_handler,
)

HANDLER_MODULE = "codexalpha.server.exception_handlers.global_handler"


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/persona-runs/run-1"
    request.query_params = {"limit": "10"}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestDomainErrorHandler:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,status_code",
        [
            (ValidationError("Invalid title"), 400),
            (AuthenticationError("Incorrect password"), 401),
            (NotFoundError("Persona run not found"), 404),
            (ConflictError("Cooldown"), 409),
            (RateLimitedError("Too many attempts"), 429),
            (AIProviderError("upstream failure"), 502),
        ],
    )
    async def test_status_and_body(self, mock_request, exc, status_code):
        response = await codexalpha_error_handler(mock_request, exc)

        assert response.status_code == status_code
        assert json.loads(response.body) == {"detail": exc.message, "error_type": type(exc).__name__}

    @pytest.mark.asyncio
    async def test_details_are_merged(self, mock_request):
        exc = AuthenticationError("Password required", details={"requires_password": True})

        response = await codexalpha_error_handler(mock_request, exc)

        assert json.loads(response.body)["requires_password"] is True

    @pytest.mark.asyncio
    async def test_explicit_status_code(self, mock_request):
        response = await codexalpha_error_handler(mock_request, ValidationError("Gone", status_code=410))
        assert response.status_code == 410

    @pytest.mark.asyncio
    async def test_server_side_errors_are_logged_as_errors(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error") as mock_log_error:
            await codexalpha_error_handler(mock_request, AIProviderError("upstream failure"))

        mock_logger.error.assert_called_once()
        mock_log_error.assert_called_once_with(
            "AIProviderError", "upstream failure", {"path": "/api/v1/persona-runs/run-1"}
        )

    @pytest.mark.asyncio
    async def test_client_errors_are_logged_as_info(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error") as mock_log_error:
            await codexalpha_error_handler(mock_request, NotFoundError("Persona run not found"))

        mock_logger.info.assert_called_once()
        mock_logger.error.assert_not_called()
        mock_log_error.assert_not_called()


class TestGlobalExceptionHandler:
    @pytest.mark.asyncio
    async def test_logs_error_with_context(self, mock_request):
        exc = ValueError("Test error")

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Unhandled exception" in call_args[0][0]
        extra = call_args[1]["extra"]
        assert extra["error_type"] == "ValueError"
        assert extra["query_params"] == {"limit": "10"}
        assert extra["client"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_returns_500_with_error_id(self, mock_request):
        exc = RuntimeError("Test error")

        with patch(f"{HANDLER_MODULE}.logger"):
            response = await global_exception_handler(mock_request, exc)

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body == {"detail": "Internal server error", "error_id": id(exc), "error_type": "RuntimeError"}

    @pytest.mark.asyncio
    async def test_request_without_client(self, mock_request):
        mock_request.client = None

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            await global_exception_handler(mock_request, KeyError("x"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class TestSetupExceptionHandlers:
    @pytest.fixture
    def app(self) -> FastAPI:
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/missing")
        async def missing():
            raise NotFoundError("Persona run not found")

        @app.get("/boom")
        async def boom():
            raise RuntimeError("unexpected")

        return app

    def test_handlers_are_registered(self, app):
        from codexalpha.core.errors import CodexAlphaError

        assert app.exception_handlers[CodexAlphaError] is codexalpha_error_handler
        assert app.exception_handlers[Exception] is global_exception_handler

    def test_domain_error_response(self, app):
        response = TestClient(app).get("/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Persona run not found", "error_type": "NotFoundError"}

    def test_unhandled_error_response(self, app):
        response = TestClient(app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"
