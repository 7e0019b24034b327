"""Shared exceptions for pubstar."""

from __future__ import annotations

from typing import Any, Dict


class PubSubError(Exception):
    """Base class for errors raised by pubstar itself."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self._details: Dict[str, Any] = {}
        for key, value in details.items():
            if value is None:
                continue
            self._details[str(key)] = value

    @property
    def details(self) -> Dict[str, Any]:
        return dict(self._details)


class InvalidArgumentError(PubSubError, TypeError):
    """Raised before any mutation or dispatch when an argument has the wrong type."""


class InvalidTopicError(InvalidArgumentError):
    """Raised when a topic is not a string (or, for matching, not a pattern)."""


class InvalidSubscriberError(InvalidArgumentError):
    """Raised when a subscriber is not callable."""


class SettingsError(PubSubError):
    """Raised when the settings file exists but cannot be parsed."""
