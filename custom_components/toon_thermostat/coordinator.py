"""DataUpdateCoordinator for Toon Thermostat.

One coordinator exists per agreement (display). It polls the status endpoint,
merges webhook pushes into the same state and forwards commands to the
thermostat endpoint.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.exceptions import ConfigEntryError, ConfigEntryNotReady, HomeAssistantError
from homeassistant.helpers.debounce import Debouncer
from homeassistant.helpers.event import async_call_later
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import ToonApi
from .const import (
    AGREEMENT_MAX_ATTEMPTS,
    AGREEMENT_RETRY_DELAY,
    CONF_DISPLAY_COMMON_NAME,
    CONF_SCAN_INTERVAL,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    MAX_UNAVAILABLE_UPDATES,
    PROGRAM_STATE_OFF,
    PROGRAM_STATE_ON,
    PROGRAM_STATE_OVERRIDE,
    SETPOINT_RETRY_DELAY,
    TEMPERATURE_STATES,
    WEBHOOK_DEBOUNCE_SECONDS,
    WEBHOOK_SUBSCRIBED_ACTIONS,
    WEBHOOK_SUBSCRIPTION_REFRESH,
)
from .exceptions import (
    ToonAgreementError,
    ToonApiError,
    ToonAuthError,
    ToonCommunicationError,
    ToonError,
    ToonValidationError,
)
from .helpers import (
    build_thermostat_payload,
    merge_status,
    parse_status_update,
    round_setpoint,
    temperature_state_id,
)

_LOGGER = logging.getLogger(__name__)


class ToonDataUpdateCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator that mirrors the state of a single Toon display."""

    def __init__(
        self,
        hass: HomeAssistant,
        api: ToonApi,
        *,
        display_common_name: str,
        config_entry: ConfigEntry | None = None,
        scan_interval: timedelta | None = None,
    ) -> None:
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=scan_interval or DEFAULT_SCAN_INTERVAL,
        )
        self.api = api
        self.display_common_name = display_common_name
        self._unavailable_count = 0
        self._callback_url: str | None = None
        self._unsub_subscription_refresh: CALLBACK_TYPE | None = None
        self._pending_push: dict[str, Any] | None = None
        # Vendor retries deliver the same push several times in quick succession.
        self._push_debouncer = Debouncer(
            hass,
            _LOGGER,
            cooldown=WEBHOOK_DEBOUNCE_SECONDS,
            immediate=True,
            function=self._async_process_pending_push,
        )

    @classmethod
    def from_entry(cls, hass: HomeAssistant, api: ToonApi, entry: ConfigEntry) -> ToonDataUpdateCoordinator:
        opts = entry.options
        scan = timedelta(seconds=int(opts.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL.total_seconds())))
        return cls(
            hass,
            api,
            display_common_name=entry.data[CONF_DISPLAY_COMMON_NAME],
            config_entry=entry,
            scan_interval=scan,
        )

    # ── Polling ─────────────────────────────────────────────────────────────

    async def _async_update_data(self) -> dict[str, Any]:
        try:
            raw = await self.api.async_get_status()
        except ToonCommunicationError as err:
            self._unavailable_count += 1
            if self.data is None or self._unavailable_count > MAX_UNAVAILABLE_UPDATES:
                raise UpdateFailed(f"Toon display is offline: {err}") from err
            _LOGGER.warning(
                "Toon display %s unreachable (%s of %s tolerated)",
                self.display_common_name,
                self._unavailable_count,
                MAX_UNAVAILABLE_UPDATES,
            )
            return self.data
        except ToonError as err:
            raise UpdateFailed(f"Error communicating with Toon: {err}") from err

        self._unavailable_count = 0
        return merge_status(self.data, parse_status_update(raw))

    async def async_register_agreement(self, agreement_id: str) -> dict[str, Any]:
        """Register the agreement, retrying with a fixed delay."""
        for attempt in range(1, AGREEMENT_MAX_ATTEMPTS + 1):
            try:
                return await self.api.async_register_agreement(agreement_id)
            except ToonAgreementError as err:
                raise ConfigEntryError(str(err)) from err
            except ToonApiError as err:
                if attempt == AGREEMENT_MAX_ATTEMPTS:
                    raise ConfigEntryNotReady(f"Registering agreement {agreement_id} failed: {err}") from err
                _LOGGER.warning(
                    "Registering agreement %s failed (%s), retrying in %ss",
                    agreement_id,
                    err,
                    AGREEMENT_RETRY_DELAY,
                )
                await asyncio.sleep(AGREEMENT_RETRY_DELAY)
        raise ConfigEntryNotReady(f"Registering agreement {agreement_id} failed")

    # ── Webhook pushes ──────────────────────────────────────────────────────

    async def async_handle_push(self, body: dict[str, Any]) -> None:
        """Queue a webhook body for the push debouncer.

        The first push is applied right away. Pushes arriving within the
        cooldown are not dropped: once it ends, the newest of them is applied
        in a single trailing call.
        """
        self._pending_push = body
        await self._push_debouncer.async_call()

    async def _async_process_pending_push(self) -> None:
        body, self._pending_push = self._pending_push, None
        if body is not None:
            self.async_process_push(body)

    @callback
    def async_process_push(self, body: dict[str, Any]) -> bool:
        """Apply a webhook body to the mirrored state. Returns False when ignored."""
        update = body.get("updateDataSet") if isinstance(body, dict) else None
        if not isinstance(update, dict):
            return False

        # Prevent parsing data from other displays
        common_name = body.get("commonName")
        if common_name is not None and common_name != self.display_common_name:
            return False

        ttl = body.get("timeToLiveSeconds")
        if ttl:
            self._schedule_subscription_refresh(timedelta(seconds=float(ttl)))

        _LOGGER.debug("Processing pushed status update for %s: %s", self.display_common_name, update)
        self._unavailable_count = 0
        self.async_set_updated_data(merge_status(self.data, parse_status_update(update)))
        return True

    async def async_subscribe_webhook(self, callback_url: str) -> None:
        """Ask Toon to push updates to ``callback_url``."""
        self._callback_url = callback_url
        # Refresh after a period of inactivity; pushes re-arm this with their TTL.
        self._schedule_subscription_refresh(WEBHOOK_SUBSCRIPTION_REFRESH)

        try:
            webhooks = await self.api.async_get_webhooks()
        except ToonApiError as err:
            _LOGGER.debug("Failed to get existing webhook subscriptions: %s", err)
            webhooks = []

        for webhook in webhooks:
            if (
                isinstance(webhook, dict)
                and webhook.get("applicationId") == self.api.application_id
                and webhook.get("callbackUrl") == callback_url
            ):
                _LOGGER.debug("Webhook subscription for %s already active", self.display_common_name)
                return

        try:
            await self.api.async_subscribe_webhook(callback_url, WEBHOOK_SUBSCRIBED_ACTIONS)
        except ToonError as err:
            _LOGGER.error("Failed to register webhook subscription: %s", err)
            raise
        _LOGGER.info("Subscribed %s to Toon webhook updates", self.display_common_name)

    async def async_unsubscribe_webhook(self) -> None:
        self._cancel_subscription_refresh()
        if self._callback_url is None:
            return
        self._callback_url = None
        await self.api.async_unsubscribe_webhook()

    def _schedule_subscription_refresh(self, delay: timedelta) -> None:
        if self._callback_url is None:
            return
        self._cancel_subscription_refresh()
        self._unsub_subscription_refresh = async_call_later(
            self.hass, delay, self._async_subscription_refresh
        )

    def _cancel_subscription_refresh(self) -> None:
        if self._unsub_subscription_refresh is not None:
            self._unsub_subscription_refresh()
            self._unsub_subscription_refresh = None

    async def _async_subscription_refresh(self, _now: datetime) -> None:
        self._unsub_subscription_refresh = None
        if self._callback_url is None:
            return
        try:
            await self.async_subscribe_webhook(self._callback_url)
        except HomeAssistantError as err:
            _LOGGER.warning("Refreshing webhook subscription failed: %s", err)

    # ── Commands ────────────────────────────────────────────────────────────

    def _thermostat_info(self) -> dict[str, Any]:
        return (self.data or {}).get("thermostat_info") or {}

    async def _async_put_thermostat(self, payload: dict[str, Any]) -> None:
        await self.api.async_update_thermostat(payload)
        self.async_set_updated_data(
            merge_status(self.data, parse_status_update({"thermostatInfo": payload}))
        )

    async def async_set_target_temperature(self, temperature: float | None) -> float:
        """Set a manual setpoint; the program resumes at its next switch point."""
        if temperature is None:
            _LOGGER.error("No temperature provided")
            raise ToonValidationError("missing_temperature_argument")

        temperature = round_setpoint(temperature)
        payload = build_thermostat_payload(
            self._thermostat_info(),
            currentSetpoint=round(temperature * 100),
            programState=PROGRAM_STATE_OVERRIDE,
            activeState=TEMPERATURE_STATES["none"],
        )
        _LOGGER.debug("Set target temperature to %s", temperature)
        self.async_set_updated_data(merge_status(self.data, {"target_temperature": temperature}))

        try:
            await self._async_put_thermostat(payload)
        except (ToonAuthError, ToonCommunicationError, ToonAgreementError) as err:
            _LOGGER.error("Failed to set temperature to %s: %s", temperature, err)
            raise
        except ToonApiError as err:
            _LOGGER.warning(
                "Failed to set temperature to %s (%s), retrying in %ss",
                temperature,
                err,
                SETPOINT_RETRY_DELAY,
            )
            await asyncio.sleep(SETPOINT_RETRY_DELAY)
            try:
                await self._async_put_thermostat(payload)
            except ToonError as retry_err:
                _LOGGER.error("Failed to set temperature to %s: %s", temperature, retry_err)
                raise

        _LOGGER.debug("Success setting temperature to %s", temperature)
        return temperature

    async def async_set_temperature_state(self, state: str, resume_program: bool = False) -> str:
        """Switch to a preset, optionally letting the program take over again later."""
        state_id = temperature_state_id(state)
        if state_id is None:
            raise ToonValidationError(f"Unknown temperature state: {state}")

        payload = build_thermostat_payload(
            self._thermostat_info(),
            activeState=state_id,
            programState=PROGRAM_STATE_OVERRIDE if resume_program else PROGRAM_STATE_OFF,
        )
        _LOGGER.debug("Set state to %s (%s), resume program: %s", state, state_id, resume_program)

        try:
            await self._async_put_thermostat(payload)
        except ToonError as err:
            _LOGGER.error("Failed to set temperature state to %s (%s): %s", state, state_id, err)
            raise
        return state

    async def async_enable_program(self) -> None:
        _LOGGER.debug("Enable program")
        await self._async_put_thermostat(
            build_thermostat_payload(self._thermostat_info(), programState=PROGRAM_STATE_ON)
        )

    async def async_disable_program(self) -> None:
        _LOGGER.debug("Disable program")
        await self._async_put_thermostat(
            build_thermostat_payload(self._thermostat_info(), programState=PROGRAM_STATE_OFF)
        )

    async def async_resume_program(self) -> None:
        await self.async_enable_program()

    async def async_shutdown(self) -> None:
        self._cancel_subscription_refresh()
        self._push_debouncer.async_cancel()
        await super().async_shutdown()
