"""Exceptions raised by the Toon Thermostat integration."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class ToonError(HomeAssistantError):
    """Base class for Toon errors."""


class ToonApiError(ToonError):
    """The Toon API responded with an unexpected status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ToonAuthError(ToonApiError):
    """The Toon API kept rejecting the access token."""


class ToonCommunicationError(ToonApiError):
    """The Toon cloud could not reach the display (device offline)."""


class ToonAgreementError(ToonError):
    """An agreement id was missing or is not known to the account."""


class ToonValidationError(ToonError):
    """A command argument failed local validation."""
