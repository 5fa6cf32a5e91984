"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Logfire initialization with various configurations
- Feature flag handling for instrumentation
- Custom logging helpers (codex generation, LLM calls, API requests, errors)
- Graceful degradation when Logfire calls fail
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI

from codexalpha.core import monitoring

MODULE = "codexalpha.core.monitoring"


@pytest.fixture
def enabled(monkeypatch):
    """Logfire enabled with a token and every instrumentation flag on."""
    monkeypatch.setattr(monitoring, "LOGFIRE_ENABLED", True)
    monkeypatch.setattr(monitoring, "LOGFIRE_TOKEN", "test-token")
    monkeypatch.setattr(monitoring, "LOGFIRE_SERVICE_NAME", "test-service")
    monkeypatch.setattr(monitoring, "LOGFIRE_ENVIRONMENT", "test")
    for flag in ("LOGFIRE_TRACE_SQLALCHEMY", "LOGFIRE_TRACE_HTTPX", "LOGFIRE_TRACE_FASTAPI"):
        monkeypatch.setattr(monitoring, flag, True)


class TestInitializeLogfire:
    @patch(f"{MODULE}.LOGFIRE_ENABLED", False)
    @patch("logfire.configure")
    def test_disabled(self, mock_configure):
        monitoring.initialize_logfire()
        mock_configure.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "")
    @patch(f"{MODULE}.logger")
    @patch("logfire.configure")
    def test_enabled_without_token(self, mock_configure, mock_logger):
        monitoring.initialize_logfire()

        mock_configure.assert_not_called()
        assert "LOGFIRE_TOKEN is not set" in mock_logger.warning.call_args[0][0]

    @patch("logfire.instrument_fastapi")
    @patch("logfire.instrument_httpx")
    @patch("logfire.instrument_sqlalchemy")
    @patch("logfire.configure")
    def test_configures_and_instruments(self, mock_configure, mock_sqlalchemy, mock_httpx, mock_fastapi, enabled):
        app = FastAPI()

        monitoring.initialize_logfire(app)

        mock_configure.assert_called_once()
        assert mock_configure.call_args.kwargs["token"] == "test-token"
        assert mock_configure.call_args.kwargs["service_name"] == "test-service"
        assert mock_configure.call_args.kwargs["environment"] == "test"
        mock_sqlalchemy.assert_called_once()
        mock_httpx.assert_called_once()
        mock_fastapi.assert_called_once_with(app=app)

    @patch("logfire.instrument_fastapi")
    @patch("logfire.instrument_httpx")
    @patch("logfire.instrument_sqlalchemy")
    @patch("logfire.configure")
    def test_skips_fastapi_without_app(self, mock_configure, mock_sqlalchemy, mock_httpx, mock_fastapi, enabled):
        monitoring.initialize_logfire()
        mock_fastapi.assert_not_called()

    @patch(f"{MODULE}.logger")
    @patch("logfire.instrument_httpx")
    @patch("logfire.instrument_sqlalchemy", side_effect=RuntimeError("no engine"))
    @patch("logfire.configure")
    def test_instrumentation_failure_is_a_warning(
        self, mock_configure, mock_sqlalchemy, mock_httpx, mock_logger, enabled
    ):
        monitoring.initialize_logfire()

        mock_httpx.assert_called_once()
        assert any("Failed to instrument SQLAlchemy" in c[0][0] for c in mock_logger.warning.call_args_list)

    @patch(f"{MODULE}.logger")
    @patch("logfire.configure", side_effect=RuntimeError("bad token"))
    def test_configure_failure_is_logged(self, mock_configure, mock_logger, enabled):
        monitoring.initialize_logfire()
        assert "Failed to initialize Logfire" in mock_logger.error.call_args[0][0]


class TestLoggingHelpers:
    @patch("logfire.info")
    def test_log_codex_generation(self, mock_info):
        monitoring.log_codex_generation("run-1", "codex-1", "ready", 1250.0)

        mock_info.assert_called_once_with(
            "Codex generation finished", persona_run_id="run-1", codex_id="codex-1", status="ready", duration_ms=1250.0
        )

    @patch("logfire.info")
    def test_log_llm_call(self, mock_info):
        monitoring.log_llm_call("gpt-4o-mini", 150, 0.0003)
        mock_info.assert_called_once_with("LLM call completed", model="gpt-4o-mini", tokens_used=150, cost_usd=0.0003)

    @patch("logfire.info")
    def test_log_api_request(self, mock_info):
        monitoring.log_api_request("GET", "/health", 200, 3.5)

        mock_info.assert_called_once_with(
            "API request completed", method="GET", path="/health", status_code=200, duration_ms=3.5
        )

    @patch("logfire.error")
    def test_log_error(self, mock_error):
        monitoring.log_error("NotFoundError", "Persona run not found", {"path": "/api/v1/persona-runs/x"})
        mock_error.assert_called_once_with("NotFoundError: Persona run not found", path="/api/v1/persona-runs/x")

    @pytest.mark.parametrize(
        "call",
        [
            lambda: monitoring.log_codex_generation("run-1", "codex-1", "failed", 1.0),
            lambda: monitoring.log_llm_call("gpt-4o", 10),
            lambda: monitoring.log_api_request("POST", "/api/v1/persona-runs", 500, 2.0),
        ],
    )
    def test_helpers_never_raise(self, call):
        with patch("logfire.info", MagicMock(side_effect=RuntimeError("down"))):
            call()

    def test_log_error_never_raises(self):
        with patch("logfire.error", MagicMock(side_effect=RuntimeError("down"))):
            monitoring.log_error("ValueError", "boom")
