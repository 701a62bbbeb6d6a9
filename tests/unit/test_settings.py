import pytest
from pydantic import ValidationError

from idv.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_poll_interval(self) -> None:
        s = Settings()
        assert s.session_poll_interval_seconds == 5

    def test_default_stream_timeout(self) -> None:
        s = Settings()
        assert s.recognition_stream_timeout_seconds == 30.0

    def test_default_biometric_delay(self) -> None:
        s = Settings()
        assert s.biometric_submit_delay_seconds == 5.0

    def test_default_webhook_timeouts(self) -> None:
        s = Settings()
        assert s.webhook_timeout_seconds == 10.0
        assert s.webhook_test_timeout_seconds == 15.0


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_db_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_HOST", "db.example.com")
        s = Settings()
        assert s.db_host == "db.example.com"

    def test_loads_max_concurrent_sessions(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_CONCURRENT_SESSIONS", "8")
        s = Settings()
        assert s.max_concurrent_sessions == 8

    def test_loads_biometric_delay(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BIOMETRIC_SUBMIT_DELAY_SECONDS", "0")
        s = Settings()
        assert s.biometric_submit_delay_seconds == 0


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_stream_timeout_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECOGNITION_STREAM_TIMEOUT_SECONDS", "soon")
        with pytest.raises(ValidationError):
            Settings()
