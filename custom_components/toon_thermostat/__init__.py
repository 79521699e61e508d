"""Toon Thermostat integration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_entry_oauth2_flow
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .api import ToonApi
from .const import (
    CONF_AGREEMENT_ID,
    CONF_CONFIG_ENTRY_ID,
    DOMAIN,
    PLATFORMS,
    TEMPERATURE_STATES,
    WEBHOOK_BACKUP_POLL_INTERVAL,
)
from .coordinator import ToonDataUpdateCoordinator
from .webhook import async_register_webhook, async_unregister_webhook, webhook_url

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)


@dataclass(slots=True)
class ToonRuntimeData:
    """Runtime data for a config entry."""

    api: ToonApi
    coordinator: ToonDataUpdateCoordinator


SERVICE_SET_TEMPERATURE_STATE = "set_temperature_state"
SERVICE_RESUME_PROGRAM = "resume_program"
SERVICE_ENABLE_PROGRAM = "enable_program"
SERVICE_DISABLE_PROGRAM = "disable_program"

ATTR_STATE = "state"
ATTR_RESUME_PROGRAM = "resume_program"

SERVICE_SCHEMA_ENTRY = vol.Schema(
    {
        vol.Optional(CONF_CONFIG_ENTRY_ID): cv.string,
    }
)

SERVICE_SCHEMA_SET_TEMPERATURE_STATE = SERVICE_SCHEMA_ENTRY.extend(
    {
        vol.Required(ATTR_STATE): vol.In([state for state in TEMPERATURE_STATES if state != "none"]),
        vol.Optional(ATTR_RESUME_PROGRAM, default=False): cv.boolean,
    }
)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the integration (YAML not used, but keep for HA)."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Toon Thermostat from a config entry."""
    implementation = await config_entry_oauth2_flow.async_get_config_entry_implementation(hass, entry)
    oauth_session = config_entry_oauth2_flow.OAuth2Session(hass, entry, implementation)
    api = ToonApi(oauth_session)

    coordinator = ToonDataUpdateCoordinator.from_entry(hass, api, entry)
    await coordinator.async_register_agreement(entry.data[CONF_AGREEMENT_ID])
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = ToonRuntimeData(api=api, coordinator=coordinator)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # --- Webhook for real-time updates (auto-detect) ---
    wh_url = webhook_url(hass, entry.entry_id)
    if wh_url:
        await async_register_webhook(hass, entry.entry_id)
        try:
            await coordinator.async_subscribe_webhook(wh_url)
        except HomeAssistantError as err:
            _LOGGER.warning("Toon webhook subscription failed, relying on polling: %s", err)
        else:
            _LOGGER.info(
                "External URL detected – webhook active at %s, polling reduced to %s",
                wh_url, WEBHOOK_BACKUP_POLL_INTERVAL,
            )
            coordinator.update_interval = WEBHOOK_BACKUP_POLL_INTERVAL
    else:
        _LOGGER.info("No external URL configured – using polling only (interval %s)", coordinator.update_interval)

    # Reload when options change
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    _async_register_services(hass)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    runtime: ToonRuntimeData | None = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if runtime is not None:
        try:
            await runtime.coordinator.async_unsubscribe_webhook()
        except HomeAssistantError as err:
            _LOGGER.warning("Failed to remove Toon webhook subscription: %s", err)

    # Unregister webhook (no-op if not registered)
    await async_unregister_webhook(hass, entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id, None)
        if runtime is not None:
            await runtime.coordinator.async_shutdown()
    return unload_ok


def _resolve_runtime(hass: HomeAssistant, entry_id: str | None) -> ToonRuntimeData:
    runtimes = {
        k: v for k, v in hass.data.get(DOMAIN, {}).items() if isinstance(v, ToonRuntimeData)
    }

    runtime: ToonRuntimeData | None = None
    if entry_id:
        runtime = runtimes.get(entry_id)
    elif len(runtimes) == 1:
        runtime = next(iter(runtimes.values()))

    if runtime is None:
        raise HomeAssistantError(
            "Cannot pick a Toon display. Pass config_entry_id or keep a single Toon entry."
        )
    return runtime


def _async_register_services(hass: HomeAssistant) -> None:
    """Register domain services once."""
    if hass.services.has_service(DOMAIN, SERVICE_SET_TEMPERATURE_STATE):
        return

    async def _handle_set_temperature_state(call: ServiceCall) -> None:
        data = SERVICE_SCHEMA_SET_TEMPERATURE_STATE(dict(call.data))
        runtime = _resolve_runtime(hass, data.get(CONF_CONFIG_ENTRY_ID))
        await runtime.coordinator.async_set_temperature_state(
            data[ATTR_STATE], resume_program=data[ATTR_RESUME_PROGRAM]
        )

    async def _handle_resume_program(call: ServiceCall) -> None:
        runtime = _resolve_runtime(hass, call.data.get(CONF_CONFIG_ENTRY_ID))
        await runtime.coordinator.async_resume_program()

    async def _handle_enable_program(call: ServiceCall) -> None:
        runtime = _resolve_runtime(hass, call.data.get(CONF_CONFIG_ENTRY_ID))
        await runtime.coordinator.async_enable_program()

    async def _handle_disable_program(call: ServiceCall) -> None:
        runtime = _resolve_runtime(hass, call.data.get(CONF_CONFIG_ENTRY_ID))
        await runtime.coordinator.async_disable_program()

    hass.services.async_register(
        DOMAIN,
        SERVICE_SET_TEMPERATURE_STATE,
        _handle_set_temperature_state,
        schema=SERVICE_SCHEMA_SET_TEMPERATURE_STATE,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_RESUME_PROGRAM, _handle_resume_program, schema=SERVICE_SCHEMA_ENTRY
    )
    hass.services.async_register(
        DOMAIN, SERVICE_ENABLE_PROGRAM, _handle_enable_program, schema=SERVICE_SCHEMA_ENTRY
    )
    hass.services.async_register(
        DOMAIN, SERVICE_DISABLE_PROGRAM, _handle_disable_program, schema=SERVICE_SCHEMA_ENTRY
    )
