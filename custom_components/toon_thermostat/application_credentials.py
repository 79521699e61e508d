"""Application Credentials for Toon Thermostat.

Users register an app on the Toon developer portal and enter its consumer
key and secret in the UI; those act as the OAuth client id and secret.
"""

from __future__ import annotations

import logging
from json import JSONDecodeError
from typing import Any, cast

from aiohttp import ClientError, ClientResponse

from homeassistant.components.application_credentials import (
    AuthImplementation,
    AuthorizationServer,
    ClientCredential,
)
from homeassistant.core import HomeAssistant
from homeassistant.helpers import aiohttp_client

from .const import OAUTH2_AUTHORIZE_URL, OAUTH2_TOKEN_URL

_LOGGER = logging.getLogger(__name__)

REQUIRED_TOKEN_FIELDS = ("access_token", "refresh_token")


async def _async_error_details(resp: ClientResponse) -> tuple[str, str]:
    try:
        body = await resp.json()
    except (ClientError, JSONDecodeError):
        body = None
    if not isinstance(body, dict):
        return "unknown", "unknown error"
    return body.get("error", "unknown"), body.get("error_description", "unknown error")


class ToonAuthImplementation(AuthImplementation):
    """OAuth2 against the Toon token endpoint.

    The consumer key and secret travel in the form body, not in a Basic
    auth header. Toon rotates the refresh token on every refresh, so a
    response without one would leave the entry unable to refresh again.
    """

    @property
    def name(self) -> str:
        return "Toon consumer key"

    async def _token_request(self, data: dict[str, Any]) -> dict:
        session = aiohttp_client.async_get_clientsession(self.hass)
        form = {**data, "client_id": self.client_id, "client_secret": self.client_secret}

        _LOGGER.debug("Requesting Toon token (grant_type=%s)", form.get("grant_type"))
        resp = await session.post(self.token_url, data=form)

        if resp.status >= 400:
            error, description = await _async_error_details(resp)
            _LOGGER.error("Toon token request rejected (%s): %s", error, description)
            resp.raise_for_status()

        token = cast(dict, await resp.json())
        missing = [field for field in REQUIRED_TOKEN_FIELDS if field not in token]
        if missing:
            _LOGGER.error("Toon token response lacks %s", ", ".join(missing))
            raise ClientError(f"Toon token response is missing {', '.join(missing)}")
        return token


async def async_get_auth_implementation(
    hass: HomeAssistant, auth_domain: str, credential: ClientCredential
) -> ToonAuthImplementation:
    return ToonAuthImplementation(
        hass,
        auth_domain,
        credential,
        AuthorizationServer(authorize_url=OAUTH2_AUTHORIZE_URL, token_url=OAUTH2_TOKEN_URL),
    )


async def async_get_description_placeholders(hass: HomeAssistant) -> dict[str, str]:
    """Link to the portal where Toon consumer keys are issued."""
    return {"developer_url": "https://developer.toon.eu"}
