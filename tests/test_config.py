"""Tests for settings and logging configuration."""

import json
import logging

from durable_agents.config import RATE_LIMIT_PER_MINUTE, Settings
from durable_agents.logging_config import JSONFormatter


class TestSettings:
    """Tests for Settings.from_env()."""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set."""
        for name in ["RATE_LIMIT_PER_MINUTE", "WEBHOOK_URL", "CORS_ORIGINS"]:
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env(":memory:")

        assert settings.db_path == ":memory:"
        assert settings.rate_limit_per_minute == RATE_LIMIT_PER_MINUTE
        assert settings.webhook_url is None

    def test_environment_overrides(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "5")
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("WEBHOOK_URL", "https://hooks.test/x")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")

        settings = Settings.from_env(":memory:")

        assert settings.rate_limit_per_minute == 5
        assert settings.http_timeout_seconds == 2.5
        assert settings.webhook_url == "https://hooks.test/x"
        assert settings.cors_origins == ["https://a.test", "https://b.test"]

    def test_rate_limit_ttl_follows_window(self, monkeypatch):
        """Test that the counter TTL outlives a configured long window."""
        monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "600")
        monkeypatch.delenv("RATE_LIMIT_TTL_SECONDS", raising=False)

        settings = Settings.from_env(":memory:")

        assert settings.rate_limit_window_seconds == 600
        assert settings.rate_limit_ttl_seconds == 1200

    def test_default_rate_limit_ttl(self, monkeypatch):
        """Test the default 60s window keeps a 120s counter TTL."""
        monkeypatch.delenv("RATE_LIMIT_WINDOW_SECONDS", raising=False)
        monkeypatch.delenv("RATE_LIMIT_TTL_SECONDS", raising=False)

        assert Settings.from_env(":memory:").rate_limit_ttl_seconds == 120

    def test_database_url(self, monkeypatch):
        """Test that DATABASE_URL is used when no path is passed."""
        monkeypatch.setenv("DATABASE_URL", ":memory:")

        assert Settings.from_env().db_path == ":memory:"


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_formats_record_as_json(self):
        """Test the JSON fields of a formatted record."""
        record = logging.LogRecord(
            "durable_agents.queue", logging.INFO, __file__, 10, "sent %s", ("m1",), None
        )
        record.context = {"message_id": "m1"}

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "durable_agents.queue"
        assert data["message"] == "sent m1"
        assert data["context"] == {"message_id": "m1"}
