"""
Unit Tests for Configuration
"""

from pathlib import Path

from paperinsight.config import (
    FeatureFlags,
    GeminiSettings,
    SessionDefaults,
    get_settings,
    reset_settings,
)


class TestGeminiSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GEMINI_MAX_RETRIES", raising=False)
        monkeypatch.delenv("GEMINI_BACKOFF_BASE", raising=False)
        settings = GeminiSettings(_env_file=None)
        assert settings.base_url == "https://generativelanguage.googleapis.com/v1beta"
        assert settings.max_retries == 5
        assert settings.backoff_base == 1.0
        assert settings.speech_sample_rate == 24000

    def test_gemini_key_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "gemini")
        monkeypatch.setenv("GOOGLE_API_KEY", "google")
        assert GeminiSettings(_env_file=None).api_key == "gemini"

    def test_google_key_fallback(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "google")
        assert GeminiSettings(_env_file=None).api_key == "google"

    def test_model_overrides(self, monkeypatch):
        monkeypatch.setenv("GEMINI_TEXT_MODEL", "gemini-test")
        assert GeminiSettings(_env_file=None).text_model == "gemini-test"


class TestSessionDefaults:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PAPERINSIGHT_TARGET_LANGUAGE", "English")
        monkeypatch.setenv("PAPERINSIGHT_WEB_SEARCH", "false")
        defaults = SessionDefaults(_env_file=None)
        assert defaults.target_language == "English"
        assert defaults.web_search_enabled is False


class TestFeatureFlags:
    def test_trace_path_expanded(self, monkeypatch):
        monkeypatch.setenv("PAPERINSIGHT_TRACE_PATH", "~/traces")
        flags = FeatureFlags(_env_file=None)
        assert flags.trace_path == (Path.home() / "traces").resolve()


class TestSingleton:
    def test_get_settings_cached_until_reset(self):
        first = get_settings()
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
