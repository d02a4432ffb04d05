"""Tests for settings and display preferences."""

import pytest

from fintrack.config import Settings
from fintrack.domain.errors import ValidationError
from fintrack.domain.preferences import (
    UserPreferences,
    current_preferences,
    end_session,
    start_session,
)
from fintrack.config import DEFAULT_API_URL


def test_settings_defaults():
    """Test settings without any environment variables."""
    settings = Settings.from_env()
    assert settings.db_path is None
    assert settings.rates_app_id is None
    assert settings.rates_api_url == DEFAULT_API_URL
    assert settings.rates_timeout == 10.0
    assert settings.main_currency == "USD"


def test_settings_from_env(monkeypatch):
    """Test settings read FINTRACK_* environment variables."""
    monkeypatch.setenv("FINTRACK_DB_PATH", "/tmp/finance.db")
    monkeypatch.setenv("FINTRACK_RATES_APP_ID", "abc123")
    monkeypatch.setenv("FINTRACK_RATES_API_URL", "https://rates.example/latest.json")
    monkeypatch.setenv("FINTRACK_RATES_TIMEOUT", "2.5")
    monkeypatch.setenv("FINTRACK_MAIN_CURRENCY", "myr")

    settings = Settings.from_env()
    assert settings.db_path == "/tmp/finance.db"
    assert settings.rates_app_id == "abc123"
    assert settings.rates_api_url == "https://rates.example/latest.json"
    assert settings.rates_timeout == 2.5
    assert settings.main_currency == "MYR"


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_settings_reject_bad_timeout(monkeypatch, value):
    """Test the rate timeout must be a positive number."""
    monkeypatch.setenv("FINTRACK_RATES_TIMEOUT", value)
    with pytest.raises(ValidationError):
        Settings.from_env()


def test_preferences_session():
    """Test preferences are available for the length of a session."""
    start_session(UserPreferences(main_currency="eur"))
    try:
        assert current_preferences().main_currency == "EUR"
    finally:
        end_session()

    with pytest.raises(ValidationError):
        current_preferences()


def test_preferences_reject_bad_currency():
    """Test a malformed main currency is rejected."""
    with pytest.raises(ValidationError):
        UserPreferences(main_currency="euro")
