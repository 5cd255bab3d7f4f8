"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from project_exporter.config import ConfigurationError, Settings, split_comma_separated


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with no exporter env vars and an empty .env."""
    for name in (
        "GITHUB_TOKEN", "GITHUB_ORGANIZATIONS", "GITHUB_REPOSITORIES",
        "GITHUB_CACHE_TTL", "LOG_LEVEL", "WEB_TELEMETRY_PATH", "METRICS_NAMESPACE",
    ):
        monkeypatch.delenv(name, raising=False)
    (tmp_path / ".env").write_text("")
    monkeypatch.chdir(tmp_path)


def test_settings_has_defaults(clean_env):
    """Settings should load without a token and use sensible defaults."""
    settings = Settings()

    assert settings.github_token == ""
    assert settings.github_organizations == []
    assert settings.github_repositories == []
    assert settings.github_cache_ttl == 60
    assert settings.github_api_url == "https://api.github.com"
    assert settings.web_listen_address == "0.0.0.0:9410"
    assert settings.web_telemetry_path == "/metrics"
    assert settings.metrics_namespace == "github"
    assert settings.log_level == "INFO"


def test_settings_loads_from_env(clean_env, monkeypatch):
    """Token and scopes come from environment variables."""
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
    monkeypatch.setenv("GITHUB_ORGANIZATIONS", "acme, globex")
    monkeypatch.setenv("GITHUB_REPOSITORIES", "acme/widgets")
    monkeypatch.setenv("GITHUB_CACHE_TTL", "300")

    settings = Settings()

    assert settings.github_token == "ghp_test"
    assert settings.github_organizations == ["acme", "globex"]
    assert settings.github_repositories == ["acme/widgets"]
    assert settings.github_cache_ttl == 300


def test_settings_loads_from_env_file(clean_env, tmp_path):
    """A .env file in the working directory is honored."""
    (tmp_path / ".env").write_text(
        "GITHUB_TOKEN=ghp_from_file\n"
        "GITHUB_REPOSITORIES=acme/widgets,acme/gadgets\n"
    )

    settings = Settings()

    assert settings.github_token == "ghp_from_file"
    assert settings.github_repositories == ["acme/widgets", "acme/gadgets"]


def test_empty_scope_items_dropped(clean_env, monkeypatch):
    """Blank entries in comma-separated lists are ignored."""
    monkeypatch.setenv("GITHUB_ORGANIZATIONS", "acme,, ,globex,")

    assert Settings().github_organizations == ["acme", "globex"]


def test_negative_cache_ttl_rejected(clean_env, monkeypatch):
    """Cache TTL must be non-negative."""
    monkeypatch.setenv("GITHUB_CACHE_TTL", "-1")

    with pytest.raises(ValidationError):
        Settings()


def test_zero_cache_ttl_allowed(clean_env, monkeypatch):
    """TTL 0 disables caching and is valid."""
    monkeypatch.setenv("GITHUB_CACHE_TTL", "0")

    assert Settings().github_cache_ttl == 0


def test_settings_validates_log_level(clean_env, monkeypatch):
    """Settings should validate log level."""
    monkeypatch.setenv("LOG_LEVEL", "INVALID")

    with pytest.raises(ValidationError) as exc_info:
        Settings()

    assert "log_level must be one of" in str(exc_info.value)


def test_log_level_uppercased(clean_env, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    assert Settings().log_level == "DEBUG"


def test_telemetry_path_must_be_absolute(clean_env, monkeypatch):
    """Telemetry path must start with a slash."""
    monkeypatch.setenv("WEB_TELEMETRY_PATH", "metrics")

    with pytest.raises(ValidationError) as exc_info:
        Settings()

    assert "must start with '/'" in str(exc_info.value)


class TestSplitCommaSeparated:
    """Tests for the comma-separated list helper."""

    def test_splits_and_strips(self):
        assert split_comma_separated(" a , b,c ") == ["a", "b", "c"]

    def test_passes_lists_through(self):
        assert split_comma_separated(["a", "b"]) == ["a", "b"]

    def test_empty_string(self):
        assert split_comma_separated("") == []


def test_configuration_error_is_value_error():
    """ConfigurationError can be handled as a ValueError."""
    assert issubclass(ConfigurationError, ValueError)
