"""
Unit tests for settings.
"""
from config.settings import Settings


class TestSettings:
    """Tests for environment configuration."""

    def test_defaults(self, monkeypatch):
        """Test default values."""
        monkeypatch.delenv("STRICT_SELECTORS", raising=False)

        settings = Settings(_env_file=None)

        assert settings.history_limit == 10
        assert settings.nonce_lifetime_seconds == 86400
        assert settings.strict_selectors is False

    def test_environment_overrides(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv("WOOCOMMERCE_URL", "https://shop.example.com")
        monkeypatch.setenv("STRICT_SELECTORS", "true")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")

        settings = Settings(_env_file=None)

        assert settings.woocommerce_url == "https://shop.example.com"
        assert settings.strict_selectors is True
        assert settings.get_cors_origins() == ["https://a.test", "https://b.test"]
