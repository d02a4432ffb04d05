"""Rate storage and providers for fintrack."""

from fintrack.rates.provider import OpenExchangeRatesProvider, StaticRateProvider
from fintrack.rates.store import RateStore

__all__ = ["OpenExchangeRatesProvider", "RateStore", "StaticRateProvider"]
