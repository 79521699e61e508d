"""Shared fixtures for Toon Thermostat tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.toon_thermostat.api import ToonApi
from custom_components.toon_thermostat.coordinator import ToonDataUpdateCoordinator

AGREEMENT_ID = "10001234"
COMMON_NAME = "eneco-001-123456"
CLIENT_ID = "toon-client-id"


class FakeResponse:
    """Minimal response object returned by OAuth2Session.async_request."""

    def __init__(self, data: Any = None, status: int = 200) -> None:
        self._data = data
        self.status = status
        self.released = False

    def release(self) -> None:
        self.released = True

    async def json(self, **kwargs: Any) -> Any:
        self.released = True
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


def make_oauth_session(*responses: FakeResponse) -> MagicMock:
    """Create a mocked OAuth2Session answering requests with ``responses`` in order."""
    oauth = MagicMock()
    oauth.async_request = AsyncMock(side_effect=list(responses) or [FakeResponse({})])
    oauth.token = {"access_token": "old-access", "refresh_token": "old-refresh"}
    oauth.implementation.client_id = CLIENT_ID
    oauth.implementation.async_refresh_token = AsyncMock(
        return_value={"access_token": "new-access", "refresh_token": "new-refresh"}
    )
    oauth.config_entry.data = {"auth_implementation": "toon_thermostat", "token": oauth.token}
    return oauth


@pytest.fixture
def mock_hass():
    """Create a mock Home Assistant instance."""
    hass = MagicMock()
    hass.data = {}
    return hass


@pytest.fixture
def mock_config_entry():
    """Create a mock config entry for one Toon display."""
    entry = MagicMock()
    entry.entry_id = "test_entry_id"
    entry.data = {
        "auth_implementation": "toon_thermostat",
        "token": {"access_token": "old-access", "refresh_token": "old-refresh"},
        "agreement_id": AGREEMENT_ID,
        "display_common_name": COMMON_NAME,
    }
    entry.options = {}
    return entry


@pytest.fixture
def mock_api():
    """Create a mock ToonApi instance."""
    api = MagicMock(spec=ToonApi)
    api.agreement_id = AGREEMENT_ID
    api.application_id = CLIENT_ID
    api.async_get_status = AsyncMock(return_value={})
    api.async_update_thermostat = AsyncMock(return_value=None)
    api.async_register_agreement = AsyncMock(return_value={"agreementId": AGREEMENT_ID})
    api.async_get_webhooks = AsyncMock(return_value=[])
    api.async_subscribe_webhook = AsyncMock(return_value=None)
    api.async_unsubscribe_webhook = AsyncMock(return_value=None)
    return api


@pytest.fixture
def coordinator(mock_hass, mock_api, mock_config_entry) -> ToonDataUpdateCoordinator:
    return ToonDataUpdateCoordinator(
        mock_hass,
        mock_api,
        display_common_name=COMMON_NAME,
        config_entry=mock_config_entry,
    )


@pytest.fixture
def thermostat_info() -> dict[str, Any]:
    """A realistic thermostatInfo section."""
    return {
        "currentSetpoint": 2050,
        "currentDisplayTemp": 2034,
        "programState": 1,
        "activeState": 1,
        "nextProgram": 1,
        "nextState": 2,
        "nextTime": 1700000000,
        "nextSetpoint": 1600,
        "hasBoilerFault": 0,
        "burnerInfo": "1",
    }


@pytest.fixture
def status_payload(thermostat_info: dict[str, Any]) -> dict[str, Any]:
    """A full GET {agreementId}/status response."""
    return {
        "thermostatInfo": thermostat_info,
        "powerUsage": {
            "value": 412,
            "dayUsage": 5300,
            "dayLowUsage": 1200,
            "avgValue": 380.5,
        },
        "gasUsage": {
            "value": 0,
            "dayUsage": 2450,
            "avgDayValue": 3100.0,
        },
    }


@pytest.fixture
def agreements() -> list[dict[str, Any]]:
    return [
        {
            "agreementId": AGREEMENT_ID,
            "displayCommonName": COMMON_NAME,
            "street": "Marconistraat",
            "houseNumber": "22",
            "postalCode": "3029AK",
            "city": "ROTTERDAM",
        }
    ]
