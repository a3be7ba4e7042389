"""
Tests for core.config module.
"""

import pytest
from pydantic import ValidationError


class TestSettings:
    """Tests for Settings class."""

    def test_required_values_loaded(self):
        """Test that Jenkins settings are loaded from environment."""
        from jenkins_bridge.core.config import Settings

        settings = Settings()
        assert settings.jenkins_username == "admin"
        assert settings.webhook_secret == "test_secret"
        assert settings.notify_webhook_url == "http://chat.test/hooks/jenkins"

    def test_jenkins_url_trailing_slash_removed(self):
        from jenkins_bridge.core.config import Settings

        assert Settings().jenkins_url == "http://jenkins.test"

    def test_invalid_jenkins_url_raises(self, monkeypatch):
        monkeypatch.setenv("JENKINS_URL", "jenkins.test")

        from jenkins_bridge.core.config import Settings
        with pytest.raises(ValidationError):
            Settings()

    def test_api_token_preferred_over_password(self, monkeypatch):
        monkeypatch.setenv("JENKINS_PASSWORD", "hunter2")

        from jenkins_bridge.core.config import Settings
        assert Settings().jenkins_auth_secret == "token123"

    def test_password_used_without_token(self, monkeypatch):
        monkeypatch.delenv("JENKINS_API_TOKEN")
        monkeypatch.setenv("JENKINS_PASSWORD", "hunter2")

        from jenkins_bridge.core.config import Settings
        assert Settings().jenkins_auth_secret == "hunter2"

    def test_missing_password_and_token_raises(self, monkeypatch):
        monkeypatch.delenv("JENKINS_API_TOKEN")

        from jenkins_bridge.core.config import Settings
        with pytest.raises(ValidationError, match="JENKINS_API_TOKEN"):
            Settings()

    def test_legacy_slack_webhook_url(self, monkeypatch):
        monkeypatch.delenv("NOTIFY_WEBHOOK_URL")
        monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.test/abc")

        from jenkins_bridge.core.config import Settings
        assert Settings().notify_webhook_url == "https://hooks.slack.test/abc"

    def test_blank_secret_treated_as_unset(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "   ")

        from jenkins_bridge.core.config import Settings
        assert Settings().webhook_secret is None

    def test_production_flag(self, monkeypatch):
        monkeypatch.delenv("APP_ENV")
        monkeypatch.setenv("NODE_ENV", "Production")

        from jenkins_bridge.core.config import Settings
        settings = Settings()
        assert settings.environment == "production"
        assert settings.is_production

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("QUEUE_POLL_INTERVAL")
        monkeypatch.delenv("QUEUE_POLL_TIMEOUT")

        from jenkins_bridge.core.config import Settings
        settings = Settings()

        assert settings.queue_poll_interval == 1.0
        assert settings.queue_poll_timeout == 30.0
        assert settings.job_ttl_seconds == 3600
        assert settings.notify_timeout == 10.0
        assert settings.webhook_port == 3001
        assert settings.redis_url == "redis://localhost:6379"
        assert settings.webhook_auth_bypass is False
