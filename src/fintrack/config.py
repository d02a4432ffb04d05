"""Runtime settings for fintrack."""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from fintrack.domain.errors import ValidationError
from fintrack.domain.money import BASE_CURRENCY, normalize_currency

DEFAULT_API_URL = "https://openexchangerates.org/api/latest.json"
DEFAULT_RATES_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """Settings sourced from the environment.

    Attributes:
        db_path: SQLite database file, or None for ~/.fintrack/fintrack.db.
        rates_app_id: App ID for the live rate API.
        rates_api_url: Endpoint returning the latest rates.
        rates_timeout: Seconds to wait for the rate API.
        main_currency: Default display currency.
    """

    db_path: Optional[str] = None
    rates_app_id: Optional[str] = None
    rates_api_url: str = DEFAULT_API_URL
    rates_timeout: float = DEFAULT_RATES_TIMEOUT
    main_currency: str = BASE_CURRENCY

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FINTRACK_* environment variables.

        Raises:
            ValidationError: If a value cannot be parsed
        """
        db_path = os.getenv("FINTRACK_DB_PATH") or None
        if db_path is not None:
            db_path = str(Path(db_path).expanduser())

        raw_timeout = os.getenv("FINTRACK_RATES_TIMEOUT", "").strip()
        timeout = DEFAULT_RATES_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(Decimal(raw_timeout))
            except InvalidOperation as e:
                raise ValidationError(f"FINTRACK_RATES_TIMEOUT must be a number, got '{raw_timeout}'") from e
            if timeout <= 0:
                raise ValidationError("FINTRACK_RATES_TIMEOUT must be positive")

        return cls(
            db_path=db_path,
            rates_app_id=os.getenv("FINTRACK_RATES_APP_ID") or None,
            rates_api_url=os.getenv("FINTRACK_RATES_API_URL") or DEFAULT_API_URL,
            rates_timeout=timeout,
            main_currency=normalize_currency(os.getenv("FINTRACK_MAIN_CURRENCY") or BASE_CURRENCY),
        )
