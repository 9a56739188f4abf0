"""
Tests for configuration module.
"""
from src.config import Settings, check_startup


class TestSettings:
    """Settings defaults and environment overrides"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("NVIDIA_API_KEY", raising=False)
        settings = Settings(_env_file=None)
        assert settings.session_ttl_seconds == 1800
        assert settings.max_upload_bytes == 50 * 1024 * 1024
        assert settings.max_document_chars == 150_000
        assert settings.session_backend == "memory"

    def test_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("SESSION_BACKEND", "redis")
        monkeypatch.setenv("SESSION_MAX_ENTRIES", "7")
        settings = Settings(_env_file=None)
        assert settings.session_backend == "redis"
        assert settings.session_max_entries == 7


class TestStartupCheck:
    """Fatal configuration is reported as a result"""

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("NVIDIA_API_KEY", raising=False)
        result = check_startup(Settings(_env_file=None))
        assert result.ok is False
        assert any("NVIDIA_API_KEY" in error for error in result.errors)

    def test_valid_settings(self):
        result = check_startup(Settings(nvidia_api_key="key", _env_file=None))
        assert result.ok is True
        assert result.errors == []

    def test_claim_ttl_must_fit_within_session_ttl(self):
        result = check_startup(
            Settings(
                nvidia_api_key="key",
                session_ttl_seconds=60,
                session_claim_ttl_seconds=120,
                _env_file=None,
            )
        )
        assert result.ok is False
        assert any("SESSION_CLAIM_TTL_SECONDS" in error for error in result.errors)
