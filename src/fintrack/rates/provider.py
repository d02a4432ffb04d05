"""Exchange rate providers.

``OpenExchangeRatesProvider`` fetches the latest table over HTTP.
``StaticRateProvider`` serves a fixed table for offline use and tests.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

import requests

from fintrack.config import DEFAULT_API_URL, DEFAULT_RATES_TIMEOUT
from fintrack.domain.entities import RateTable
from fintrack.domain.errors import (
    ApiQuotaExceededError,
    NetworkFailureError,
    RateParseError,
    ValidationError,
)
from fintrack.domain.money import BASE_CURRENCY, normalize_currency

logger = logging.getLogger(__name__)

# Error codes the API returns in its JSON body for access/quota problems.
QUOTA_ERROR_MESSAGES = {"access_restricted", "not_allowed", "invalid_app_id", "missing_app_id"}


class OpenExchangeRatesProvider:
    """Fetch the latest rates from an Open Exchange Rates compatible API.

    No retry is attempted; failures surface to the caller.
    """

    def __init__(
        self,
        app_id: Optional[str],
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_RATES_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize provider.

        Args:
            app_id: API token sent as the ``app_id`` query parameter
            api_url: Endpoint returning ``{"timestamp", "base", "rates"}``
            timeout: Request timeout in seconds
            session: Optional requests session (a new one per call if None)
        """
        self.app_id = app_id
        self.api_url = api_url
        self.timeout = timeout
        self.session = session

    def fetch_latest(self, base_currency: str = BASE_CURRENCY) -> RateTable:
        """Fetch and parse the latest rate table.

        ``last_updated`` is the timestamp reported by the API, not the time
        of the call.

        Raises:
            ApiQuotaExceededError: On quota or access errors
            NetworkFailureError: On connection failures and other HTTP errors
            RateParseError: If the response body is not a valid rate payload
        """
        base = normalize_currency(base_currency)
        if not self.app_id:
            raise ApiQuotaExceededError("No API app_id configured (set FINTRACK_RATES_APP_ID)")

        params = {"app_id": self.app_id}
        if base != BASE_CURRENCY:
            params["base"] = base

        getter = self.session.get if self.session is not None else requests.get
        logger.info("Fetching latest rates from %s", self.api_url)
        try:
            response = getter(self.api_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Rate provider request failed: %s", e)
            raise NetworkFailureError(f"Could not reach rate provider: {e}") from e

        if response.status_code != 200:
            self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise RateParseError("Rate provider returned invalid JSON") from e
        return parse_rates_payload(payload)

    def _raise_for_status(self, response: requests.Response) -> None:
        try:
            body = response.json()
        except ValueError:
            body = None
        message = str(body.get("message", "")) if isinstance(body, dict) else ""
        if response.status_code == 429 or (
            response.status_code in (401, 403) and message in QUOTA_ERROR_MESSAGES
        ):
            detail = f"{response.status_code} {message}".strip()
            raise ApiQuotaExceededError(f"Rate provider refused request ({detail})")
        raise NetworkFailureError(f"Rate provider returned HTTP {response.status_code}")


def parse_rates_payload(payload: object) -> RateTable:
    """Parse an API response body into a RateTable.

    Raises:
        RateParseError: If ``rates`` or ``timestamp`` is missing or malformed,
            or a currency code is not a 3-letter code
    """
    if not isinstance(payload, dict):
        raise RateParseError("Rate payload must be a JSON object")

    raw_rates = payload.get("rates")
    if not isinstance(raw_rates, dict) or not raw_rates:
        raise RateParseError("Rate payload is missing 'rates'")

    timestamp = payload.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise RateParseError("Rate payload is missing a numeric 'timestamp'")

    rates: dict[str, Decimal] = {}
    for code, value in raw_rates.items():
        try:
            code = normalize_currency(code)
        except ValidationError as e:
            raise RateParseError(f"Rate payload has an invalid currency code {code!r}") from e
        try:
            rate = Decimal(str(value))
        except InvalidOperation as e:
            raise RateParseError(f"Rate for {code} is not numeric: {value!r}") from e
        if not rate.is_finite() or rate <= 0:
            raise RateParseError(f"Rate for {code} must be positive: {value!r}")
        rates[code] = rate

    try:
        base_currency = normalize_currency(payload.get("base") or BASE_CURRENCY)
    except ValidationError as e:
        raise RateParseError(f"Rate payload has an invalid base currency {payload.get('base')!r}") from e

    # Stored as naive UTC so it round-trips through the database unchanged.
    last_updated = datetime.fromtimestamp(timestamp, UTC).replace(tzinfo=None)
    return RateTable(rates=rates, last_updated=last_updated, base_currency=base_currency)


@dataclass
class StaticRateProvider:
    """Deterministic, in-memory rates expressed per 1 USD."""

    rates: Mapping[str, Decimal]
    last_updated: datetime = field(default_factory=lambda: datetime(2024, 1, 1))

    def fetch_latest(self, base_currency: str = BASE_CURRENCY) -> RateTable:
        return RateTable(rates=dict(self.rates), last_updated=self.last_updated)
