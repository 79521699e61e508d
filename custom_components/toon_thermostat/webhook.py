"""Receiver for Toon status pushes.

A Toon webhook subscription makes the Toon cloud POST partial status updates
(``updateDataSet``) tagged with the display's ``commonName``. One Home
Assistant webhook exists per config entry; every push is routed to the
coordinators that track that display.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from aiohttp import web
from homeassistant.components import webhook
from homeassistant.core import HomeAssistant

from .const import DOMAIN

_LOGGER = logging.getLogger(__name__)

WEBHOOK_NAME = "Toon Thermostat"


def _webhook_id_for_entry(entry_id: str) -> str:
    """Stable id, so the callback URL survives restarts and the subscription can be reused."""
    return hashlib.sha256(f"{DOMAIN}_{entry_id}".encode()).hexdigest()[:32]


def webhook_url(hass: HomeAssistant, entry_id: str) -> str | None:
    """Callback URL reachable by the Toon cloud, or None without an external URL."""
    try:
        return webhook.async_generate_url(
            hass,
            _webhook_id_for_entry(entry_id),
            allow_internal=False,
            prefer_external=True,
        )
    except Exception:  # noqa: BLE001
        return None


async def async_register_webhook(hass: HomeAssistant, entry_id: str) -> str:
    webhook_id = _webhook_id_for_entry(entry_id)
    webhook.async_register(
        hass,
        DOMAIN,
        WEBHOOK_NAME,
        webhook_id,
        _async_handle_webhook,
        allowed_methods=["POST"],
    )
    _LOGGER.debug("Listening for Toon pushes on webhook %s (entry %s)", webhook_id, entry_id)
    return webhook_id


async def async_unregister_webhook(hass: HomeAssistant, entry_id: str) -> None:
    webhook_id = _webhook_id_for_entry(entry_id)
    try:
        webhook.async_unregister(hass, webhook_id)
    except KeyError:
        # Polling-only entries never registered one.
        return
    _LOGGER.debug("Stopped listening on webhook %s", webhook_id)


async def _async_handle_webhook(
    hass: HomeAssistant,
    webhook_id: str,
    request: web.Request,
) -> web.Response:
    try:
        body: Any = await request.json()
    except (ValueError, TypeError):
        _LOGGER.warning("Ignoring Toon push that is not JSON")
        return web.Response(status=400)

    common_name = body.get("commonName") if isinstance(body, dict) else None
    if common_name is None:
        _LOGGER.warning("Ignoring Toon push without commonName")
        return web.Response(status=400, text="Invalid body")

    coordinators = _coordinators_for_display(hass, common_name)
    if not coordinators:
        _LOGGER.debug("No entry tracks display %s, push dropped", common_name)

    for coordinator in coordinators:
        await coordinator.async_handle_push(body)

    return web.Response(status=200)


def _coordinators_for_display(hass: HomeAssistant, common_name: str) -> list[Any]:
    return [
        runtime.coordinator
        for runtime in hass.data.get(DOMAIN, {}).values()
        if getattr(runtime, "coordinator", None) is not None
        and runtime.coordinator.display_common_name == common_name
    ]
