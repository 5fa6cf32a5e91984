"""Unit tests for server configuration settings model.

Tests verify that the Settings model correctly binds environment variables
from the .env.example file and that the grouped configuration models are
built from the flat settings.
"""

from pathlib import Path

import pytest

from codexalpha.server.core.config import (
    AuthConfig,
    CORSConfig,
    DatabaseConfig,
    GenerationConfig,
    NotificationConfig,
    OpenAIConfig,
    Settings,
    ShareLinkConfig,
)


@pytest.fixture
def env_example_path() -> Path:
    """Get path to the project's .env.example file."""
    return Path(__file__).resolve().parents[4] / ".env.example"


@pytest.fixture
def env_example_vars(env_example_path: Path) -> dict[str, str]:
    """Parse .env.example file and return environment variables."""
    env_vars = {}
    with open(env_example_path) as f:
        for line in f:
            line = line.strip()
            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, value = line.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


@pytest.fixture
def example_settings(env_example_vars: dict[str, str], monkeypatch) -> Settings:
    """Settings bound from every variable of .env.example."""
    for key, value in env_example_vars.items():
        monkeypatch.setenv(key, value)
    return Settings(_env_file=None)


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_env_example_binds(self, example_settings: Settings):
        assert example_settings.server_host == "0.0.0.0"
        assert example_settings.server_port == 8000
        assert example_settings.log_level == "INFO"
        assert example_settings.database_url.startswith("postgresql+asyncpg://")
        assert example_settings.create_tables is False
        assert example_settings.retry_batch_size == 5
        assert example_settings.retry_batch_delay == 2.0
        assert example_settings.share_pbkdf2_iterations == 100000
        assert example_settings.cors_origins == ["*"]

    def test_empty_values_stay_empty(self, example_settings: Settings):
        assert not example_settings.openai_api_key
        assert not example_settings.resend_api_key

    @pytest.mark.parametrize(
        "env_name,attribute,value,expected",
        [
            ("CODEXALPHA_SERVER_PORT", "server_port", "9000", 9000),
            ("CODEXALPHA_LOG_LEVEL", "log_level", "DEBUG", "DEBUG"),
            ("CODEXALPHA_CREATE_TABLES", "create_tables", "true", True),
            ("CODEXALPHA_JWT_AUDIENCE", "jwt_audience", "internal", "internal"),
            ("OPENAI_MODEL", "openai_model", "gpt-4o", "gpt-4o"),
            ("CODEXALPHA_RETRY_BATCH_DELAY", "retry_batch_delay", "0.5", 0.5),
            ("CODEXALPHA_SHARE_MAX_FAILED_ATTEMPTS", "share_max_failed_attempts", "3", 3),
            ("CORS_ORIGINS", "cors_origins", '["https://app.example.com"]', ["https://app.example.com"]),
        ],
    )
    def test_individual_bindings(self, monkeypatch, env_name, attribute, value, expected):
        monkeypatch.setenv(env_name, value)
        assert getattr(Settings(_env_file=None), attribute) == expected

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("CODEXALPHA_SERVER_PORT", "not-a-port")
        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_unknown_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("SOMETHING_ELSE", "value")
        assert not hasattr(Settings(_env_file=None), "something_else")


class TestGroupedConfigs:
    """The grouped configuration properties mirror the flat settings."""

    def test_database(self, example_settings: Settings):
        database = example_settings.database
        assert isinstance(database, DatabaseConfig)
        assert database.url == example_settings.database_url
        assert database.create_tables_on_startup is False

    def test_auth(self, example_settings: Settings):
        auth = example_settings.auth
        assert isinstance(auth, AuthConfig)
        assert (auth.jwt_secret, auth.jwt_algorithm, auth.jwt_audience) == ("change-me", "HS256", "authenticated")

    def test_openai(self, example_settings: Settings):
        openai = example_settings.openai
        assert isinstance(openai, OpenAIConfig)
        assert (openai.model, openai.base_url, openai.request_timeout) == (
            "gpt-4o-mini",
            "https://api.openai.com/v1",
            120.0,
        )

    def test_generation(self, example_settings: Settings):
        generation = example_settings.generation
        assert isinstance(generation, GenerationConfig)
        assert generation.model_dump() == {
            "batch_size": 5,
            "batch_delay_seconds": 2.0,
            "stale_pending_minutes": 5,
            "stuck_generating_minutes": 10,
            "max_retries": 2,
        }

    def test_share_links(self, example_settings: Settings):
        share_links = example_settings.share_links
        assert isinstance(share_links, ShareLinkConfig)
        assert share_links.public_app_url == "http://localhost:5173"
        assert share_links.max_failed_attempts == 10

    def test_notifications(self, example_settings: Settings):
        notifications = example_settings.notifications
        assert isinstance(notifications, NotificationConfig)
        assert notifications.resend_api_url == "https://api.resend.com/emails"
        assert notifications.from_email == "Codex Generator <onboarding@resend.dev>"

    def test_cors(self, example_settings: Settings):
        cors = example_settings.cors
        assert isinstance(cors, CORSConfig)
        assert (cors.origins, cors.allow_credentials) == (["*"], True)

    def test_groups_follow_runtime_changes(self, example_settings: Settings):
        example_settings.retry_batch_size = 1
        example_settings.openai_base_url = "http://mock-ai/v1"

        assert example_settings.generation.batch_size == 1
        assert example_settings.openai.base_url == "http://mock-ai/v1"


class TestConfigModels:
    def test_models_accept_field_names(self):
        assert GenerationConfig(batch_size=1, batch_delay_seconds=0).batch_size == 1
        assert OpenAIConfig(api_key="sk-test", base_url="http://mock-ai/v1").api_key == "sk-test"
        assert NotificationConfig(resend_api_key=None).resend_api_key is None

    def test_models_accept_aliases(self):
        assert ShareLinkConfig.model_validate({"CODEXALPHA_SHARE_PBKDF2_ITERATIONS": 1000}).pbkdf2_iterations == 1000
