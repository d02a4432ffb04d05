"""Tests for rate storage and the live rate provider."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from fintrack.domain.currency import CurrencyConverter, resolve_table_or_none
from fintrack.domain.entities import RateTable
from fintrack.domain.errors import (
    ApiQuotaExceededError,
    NetworkFailureError,
    NotFoundError,
    RateParseError,
)
from fintrack.rates.provider import OpenExchangeRatesProvider, parse_rates_payload

PAYLOAD = {
    "base": "USD",
    "timestamp": 1714564800,
    "rates": {"MYR": 4.7123, "EUR": 0.93, "JPY": 155},
}


def _response(status_code=200, payload=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def mock_get(monkeypatch):
    """Replace requests.get in the provider module."""
    get = Mock(return_value=_response(payload=PAYLOAD))
    monkeypatch.setattr("fintrack.rates.provider.requests.get", get)
    return get


def test_load_without_saved_rates(rate_store):
    """Test loading before anything is saved raises NotFoundError."""
    with pytest.raises(NotFoundError):
        rate_store.load()


def test_save_and_load(rate_store, rate_table):
    """Test a saved table loads back with exact decimal rates."""
    rate_store.save(rate_table)
    loaded = rate_store.load()
    assert loaded.rates == rate_table.rates
    assert loaded.last_updated == rate_table.last_updated
    assert loaded.base_currency == "USD"


def test_save_keeps_decimal_precision(rate_store):
    """Test rates are stored without float rounding."""
    rate_store.save(RateTable(rates={"MYR": Decimal("4.712345678901")}, last_updated=datetime(2024, 1, 1)))
    assert rate_store.load().rates["MYR"] == Decimal("4.712345678901")


def test_save_overwrites_single_slot(rate_store, rate_table):
    """Test a second save replaces the first table entirely."""
    rate_store.save(rate_table)
    newer = RateTable(rates={"GBP": Decimal("0.8")}, last_updated=datetime(2024, 6, 1))
    rate_store.save(newer)

    loaded = rate_store.load()
    assert dict(loaded.rates) == {"GBP": Decimal("0.8")}
    assert loaded.last_updated == datetime(2024, 6, 1)


def test_fetch_latest(mock_get):
    """Test a successful fetch parses rates and the API timestamp."""
    provider = OpenExchangeRatesProvider("secret", api_url="https://rates.example/latest.json", timeout=5)
    table = provider.fetch_latest()

    assert table.rates["MYR"] == Decimal("4.7123")
    assert table.rates["JPY"] == Decimal("155")
    assert table.last_updated == datetime(2024, 5, 1, 12, 0)
    mock_get.assert_called_once_with(
        "https://rates.example/latest.json", params={"app_id": "secret"}, timeout=5
    )


def test_fetch_without_app_id(mock_get):
    """Test a missing app id is reported as an access problem without a request."""
    with pytest.raises(ApiQuotaExceededError):
        OpenExchangeRatesProvider(None).fetch_latest()
    mock_get.assert_not_called()


def test_fetch_network_failure(mock_get):
    """Test connection errors become NetworkFailureError."""
    mock_get.side_effect = requests.ConnectionError("no route")
    with pytest.raises(NetworkFailureError):
        OpenExchangeRatesProvider("secret").fetch_latest()


def test_fetch_rate_limited(mock_get):
    """Test HTTP 429 becomes ApiQuotaExceededError."""
    mock_get.return_value = _response(429, {"error": True, "message": "too_many_requests"})
    with pytest.raises(ApiQuotaExceededError):
        OpenExchangeRatesProvider("secret").fetch_latest()


def test_fetch_access_restricted(mock_get):
    """Test an access error code becomes ApiQuotaExceededError."""
    mock_get.return_value = _response(403, {"error": True, "message": "access_restricted"})
    with pytest.raises(ApiQuotaExceededError) as exc_info:
        OpenExchangeRatesProvider("secret").fetch_latest()
    assert "403 access_restricted" in str(exc_info.value)


def test_fetch_server_error(mock_get):
    """Test other HTTP errors become NetworkFailureError."""
    mock_get.return_value = _response(502, json_error=True)
    with pytest.raises(NetworkFailureError):
        OpenExchangeRatesProvider("secret").fetch_latest()


def test_fetch_invalid_json(mock_get):
    """Test an unparseable body becomes RateParseError."""
    mock_get.return_value = _response(200, json_error=True)
    with pytest.raises(RateParseError):
        OpenExchangeRatesProvider("secret").fetch_latest()


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"timestamp": 1714564800},
        {"rates": {"MYR": 4.7}},
        {"timestamp": "yesterday", "rates": {"MYR": 4.7}},
        {"timestamp": 1714564800, "rates": {"MYR": "abc"}},
        {"timestamp": 1714564800, "rates": {"MYR": -1}},
        {"timestamp": 1714564800, "rates": {"USDT": 1.0, "MYR": 4.5}},
        {"timestamp": 1714564800, "base": "DOLLAR", "rates": {"MYR": 4.5}},
    ],
)
def test_parse_rejects_malformed_payload(payload):
    """Test malformed payloads are rejected."""
    with pytest.raises(RateParseError):
        parse_rates_payload(payload)


def test_fetch_with_unknown_currency_key_degrades_reports(mock_get, rate_store):
    """Test a non-ISO rate key surfaces as a provider error that reports can absorb."""
    mock_get.return_value = _response(
        payload={"timestamp": 1714564800, "rates": {"USDT": 1.0, "MYR": 4.5}}
    )
    provider = OpenExchangeRatesProvider("secret")
    with pytest.raises(RateParseError):
        provider.fetch_latest()
    assert resolve_table_or_none(CurrencyConverter(rate_store, provider)) is None
