"""Config flow for Toon Thermostat."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.helpers import config_entry_oauth2_flow

from .const import (
    CONF_AGREEMENT_ID,
    CONF_DISPLAY_COMMON_NAME,
    CONF_SCAN_INTERVAL,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    TOON_API_BASE,
)
from .helpers import agreement_title

_LOGGER = logging.getLogger(__name__)


def _valid_agreements(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, list):
        return []
    return [
        item
        for item in payload
        if isinstance(item, dict) and item.get("agreementId") and item.get("displayCommonName")
    ]


class ToonConfigFlow(
    config_entry_oauth2_flow.AbstractOAuth2FlowHandler, domain=DOMAIN
):
    """Handle a config flow for Toon Thermostat."""

    DOMAIN = DOMAIN
    VERSION = 1

    def __init__(self) -> None:
        super().__init__()
        self._oauth_data: dict[str, Any] = {}
        self._agreements: dict[str, dict[str, Any]] = {}  # agreement_id -> agreement

    @property
    def logger(self) -> logging.Logger:
        return _LOGGER

    async def async_step_reauth(
        self, entry_data: Mapping[str, Any]
    ) -> config_entries.ConfigFlowResult:
        """Start over with the OAuth dance when Toon keeps rejecting our tokens."""
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        if user_input is None:
            return self.async_show_form(step_id="reauth_confirm")
        return await self.async_step_user()

    async def async_oauth_create_entry(
        self, data: dict[str, Any]
    ) -> config_entries.ConfigFlowResult:
        """Validate token, fetch agreements, then create the entry."""
        if self.source == config_entries.SOURCE_REAUTH:
            reauth_entry = self._get_reauth_entry()
            return self.async_update_reload_and_abort(
                reauth_entry, data={**reauth_entry.data, **data}
            )

        try:
            async with asyncio.timeout(30):
                resp = await config_entry_oauth2_flow.async_oauth2_request(
                    self.hass,
                    data["token"],
                    "get",
                    f"{TOON_API_BASE}/agreements",
                )
                resp.raise_for_status()
                payload = await resp.json()
        except TimeoutError:
            return self.async_abort(reason="timeout")
        except Exception as err:  # noqa: BLE001
            _LOGGER.error("Toon token validation failed: %s", err)
            return self.async_abort(reason="cannot_connect")

        agreements = _valid_agreements(payload)
        if not agreements:
            return self.async_abort(reason="no_agreements")

        self._oauth_data = data
        self._agreements = {item["agreementId"]: item for item in agreements}

        if len(agreements) == 1:
            return await self._async_create_agreement_entry(agreements[0])

        return await self.async_step_select_agreement()

    async def async_step_select_agreement(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Let the user pick which display to add."""
        if user_input is not None:
            return await self._async_create_agreement_entry(
                self._agreements[user_input[CONF_AGREEMENT_ID]]
            )

        options = {
            agreement_id: agreement_title(agreement, multiple=True)
            for agreement_id, agreement in self._agreements.items()
        }
        schema = vol.Schema({vol.Required(CONF_AGREEMENT_ID): vol.In(options)})
        return self.async_show_form(step_id="select_agreement", data_schema=schema)

    async def _async_create_agreement_entry(
        self, agreement: dict[str, Any]
    ) -> config_entries.ConfigFlowResult:
        common_name = str(agreement["displayCommonName"])
        await self.async_set_unique_id(common_name)
        self._abort_if_unique_id_configured()

        return self.async_create_entry(
            title=agreement_title(agreement, multiple=len(self._agreements) > 1),
            data={
                **self._oauth_data,
                CONF_AGREEMENT_ID: agreement["agreementId"],
                CONF_DISPLAY_COMMON_NAME: common_name,
            },
        )

    @staticmethod
    @config_entries.callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        return ToonOptionsFlow(config_entry)


class ToonOptionsFlow(config_entries.OptionsFlow):
    """Options flow for Toon Thermostat."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._config_entry = config_entry

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        opts = self._config_entry.options
        schema = vol.Schema(
            {
                vol.Optional(
                    CONF_SCAN_INTERVAL,
                    default=int(
                        opts.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL.total_seconds())
                    ),
                ): vol.All(vol.Coerce(int), vol.Range(min=10)),
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)
