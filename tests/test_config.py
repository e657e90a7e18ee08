"""
Tests for environment-driven settings.
"""

from peoplerec.config import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("PEOPLEREC_BACKEND", "PEOPLEREC_DIRECTORY_CAP", "PEOPLEREC_FETCH_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.backend == "neo4j"
    assert settings.directory_cap == 10
    assert settings.fetch_timeout == 2.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PEOPLEREC_BACKEND", "snapshot")
    monkeypatch.setenv("PEOPLEREC_DIRECTORY_CAP", "25")
    monkeypatch.setenv("PEOPLEREC_FETCH_TIMEOUT", "0.5")
    settings = Settings()
    assert settings.backend == "snapshot"
    assert settings.directory_cap == 25
    assert settings.fetch_timeout == 0.5


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
