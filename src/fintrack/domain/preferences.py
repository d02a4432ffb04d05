"""User preferences for display currency.

Preferences are passed explicitly into reports and views. A session holds
the preferences for the current command so deeply nested display code can
read them without a global setting.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from fintrack.domain.errors import ValidationError
from fintrack.domain.money import BASE_CURRENCY, normalize_currency

_session: ContextVar[Optional["UserPreferences"]] = ContextVar("fintrack_preferences", default=None)


@dataclass(frozen=True)
class UserPreferences:
    """Per-user display settings."""

    main_currency: str = BASE_CURRENCY

    def __post_init__(self) -> None:
        object.__setattr__(self, "main_currency", normalize_currency(self.main_currency))


def start_session(preferences: UserPreferences) -> UserPreferences:
    """Make preferences current for the running command."""
    _session.set(preferences)
    return preferences


def current_preferences() -> UserPreferences:
    """Return the current session's preferences.

    Raises:
        ValidationError: If no session has been started
    """
    preferences = _session.get()
    if preferences is None:
        raise ValidationError("No preferences session has been started")
    return preferences


def end_session() -> None:
    """Clear the current session."""
    _session.set(None)
