"""Toon API client used by the Toon Thermostat integration."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiohttp import ClientError, ClientResponseError

from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers import config_entry_oauth2_flow

from .const import MAX_UNAUTHENTICATED_RESPONSES, TOON_API_BASE
from .exceptions import (
    ToonAgreementError,
    ToonApiError,
    ToonAuthError,
    ToonCommunicationError,
)
from .helpers import is_communication_error

_LOGGER = logging.getLogger(__name__)


DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class ToonApi:
    """Small async client for the Toon REST API (v3).

    Every request goes through :meth:`_request_json`, which replays a request
    once after a 401 (with a fresh access token) and once after a 500 (with
    the agreement registered again).
    """

    def __init__(
        self,
        oauth_session: config_entry_oauth2_flow.OAuth2Session,
        agreement_id: str | None = None,
    ) -> None:
        self._oauth = oauth_session
        self.agreement_id = agreement_id
        self._unauthenticated_count = 0
        self._refresh_future: asyncio.Future[dict[str, Any]] | None = None

    @property
    def application_id(self) -> str:
        """The OAuth client id, which Toon uses to identify webhook subscriptions."""
        return self._oauth.implementation.client_id

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        reauth: bool = True,
        reregister: bool = True,
    ) -> Any:
        url = f"{TOON_API_BASE}/{path}"
        try:
            resp = await self._oauth.async_request(
                method,
                url,
                headers=DEFAULT_HEADERS,
                json=json_data,
            )
        except ClientResponseError as err:
            # Raised by the session when refreshing an expired token is rejected.
            if err.status in (400, 401, 403):
                raise ConfigEntryAuthFailed("Toon authentication failed") from err
            raise ToonApiError(f"Error communicating with Toon: {err}", status=err.status) from err
        except (ClientError, TimeoutError) as err:
            raise ToonApiError(f"Error communicating with Toon: {err}") from err

        if resp.status == 401:
            resp.release()
            self._unauthenticated_count += 1
            if self._unauthenticated_count > MAX_UNAUTHENTICATED_RESPONSES:
                raise ConfigEntryAuthFailed("Toon authentication failed")
            if not reauth:
                raise ToonAuthError("Toon rejected the access token", status=401)

            _LOGGER.debug("Unauthorized %s %s, refreshing access token", method.upper(), path)
            await self.async_refresh_token()
            return await self._request_json(
                method, path, json_data=json_data, reauth=False, reregister=reregister
            )

        if resp.status == 500:
            body = await _read_json(resp)
            if is_communication_error(body):
                raise ToonCommunicationError("Toon display is offline", status=500)
            if not reregister or not self.agreement_id:
                raise ToonApiError(f"Toon responded with 500 to {method.upper()} {path}", status=500)

            # The agreement registration may have expired on the Toon side.
            _LOGGER.debug("Server error on %s %s, registering agreement again", method.upper(), path)
            await self.async_register_agreement(self.agreement_id)
            return await self._request_json(
                method, path, json_data=json_data, reauth=reauth, reregister=False
            )

        if resp.status >= 400:
            resp.release()
            raise ToonApiError(
                f"Toon responded with {resp.status} to {method.upper()} {path}",
                status=resp.status,
            )

        self._unauthenticated_count = 0
        if resp.status == 204:
            resp.release()
            return None
        return await _read_json(resp)

    async def async_refresh_token(self) -> dict[str, Any]:
        """Refresh the access token, sharing a single in-flight request.

        Callers arriving while a refresh is pending wait for that refresh and
        get its result or its error.
        """
        if self._refresh_future is not None:
            _LOGGER.debug("Token refresh already in progress, waiting for it")
            return await asyncio.shield(self._refresh_future)

        future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._refresh_future = future
        try:
            token = await self._async_refresh_token()
        except asyncio.CancelledError:
            # Waiters were not cancelled themselves; reject them instead.
            future.set_exception(ToonApiError("Token refresh was cancelled"))
            future.exception()
            raise
        except Exception as err:
            future.set_exception(err)
            # Nobody may be waiting; mark the exception as retrieved.
            future.exception()
            raise
        else:
            future.set_result(token)
            return token
        finally:
            self._refresh_future = None

    async def _async_refresh_token(self) -> dict[str, Any]:
        oauth = self._oauth
        _LOGGER.debug("Performing token refresh request")
        try:
            new_token = await oauth.implementation.async_refresh_token(oauth.token)
        except ClientResponseError as err:
            if 400 <= err.status < 500:
                raise ConfigEntryAuthFailed("Toon refused to refresh the access token") from err
            raise ToonApiError(f"Token refresh failed: {err}", status=err.status) from err
        except (ClientError, TimeoutError) as err:
            raise ToonApiError(f"Token refresh failed: {err}") from err

        oauth.hass.config_entries.async_update_entry(
            oauth.config_entry,
            data={**oauth.config_entry.data, "token": new_token},
        )
        _LOGGER.debug("Fetched new access tokens")
        return new_token

    def _agreement_path(self, suffix: str) -> str:
        if not self.agreement_id:
            raise ToonAgreementError("No agreement registered")
        return f"{self.agreement_id}/{suffix}"

    async def async_get_agreements(self) -> list[dict[str, Any]]:
        agreements = await self._request_json("get", "agreements", reregister=False)
        if not agreements:
            _LOGGER.debug("Toon returned no agreements, trying once more")
            agreements = await self._request_json("get", "agreements", reregister=False)
        if not agreements:
            raise ToonApiError("Failed to get agreements")

        _LOGGER.debug("Got %s agreements", len(agreements))
        return agreements

    async def async_register_agreement(self, agreement_id: str | None) -> dict[str, Any]:
        """Bind the client to an agreement after checking the account still has it."""
        if not agreement_id:
            raise ToonAgreementError("Missing agreement id")

        for agreement in await self.async_get_agreements():
            if isinstance(agreement, dict) and agreement.get("agreementId") == agreement_id:
                self.agreement_id = agreement_id
                _LOGGER.debug("Registered agreement %s", agreement_id)
                return agreement

        raise ToonAgreementError(f"Agreement {agreement_id} is not available on this account")

    async def async_get_status(self) -> dict[str, Any]:
        return await self._request_json("get", self._agreement_path("status"))

    async def async_update_thermostat(self, data: dict[str, Any]) -> Any:
        _LOGGER.debug("Sending thermostat payload: %s for agreement %s", data, self.agreement_id)
        return await self._request_json("put", self._agreement_path("thermostat"), json_data=data)

    async def async_get_webhooks(self) -> list[dict[str, Any]]:
        webhooks = await self._request_json("get", self._agreement_path("webhooks"))
        return webhooks if isinstance(webhooks, list) else []

    async def async_subscribe_webhook(self, callback_url: str, actions: list[str]) -> Any:
        payload = {
            "applicationId": self.application_id,
            "callbackUrl": callback_url,
            "subscribedActions": actions,
        }
        return await self._request_json("post", self._agreement_path("webhooks"), json_data=payload)

    async def async_unsubscribe_webhook(self) -> None:
        await self._request_json(
            "delete", self._agreement_path(f"webhooks/{self.application_id}")
        )


async def _read_json(resp: Any) -> Any:
    try:
        return await resp.json(content_type=None)
    except (ClientError, ValueError):
        return None
