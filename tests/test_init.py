"""Tests for entry setup, unload and domain services."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from homeassistant.exceptions import HomeAssistantError

from custom_components.toon_thermostat import (
    SERVICE_DISABLE_PROGRAM,
    SERVICE_ENABLE_PROGRAM,
    SERVICE_RESUME_PROGRAM,
    SERVICE_SET_TEMPERATURE_STATE,
    ToonRuntimeData,
    _async_register_services,
    _resolve_runtime,
    async_setup_entry,
    async_unload_entry,
)
from custom_components.toon_thermostat.const import DOMAIN, WEBHOOK_BACKUP_POLL_INTERVAL
from custom_components.toon_thermostat.exceptions import ToonApiError

from .conftest import AGREEMENT_ID

MODULE = "custom_components.toon_thermostat"
CALLBACK_URL = "https://example.org/api/webhook/abc"


def _make_coordinator() -> MagicMock:
    coordinator = MagicMock()
    coordinator.update_interval = None
    for name in (
        "async_register_agreement",
        "async_config_entry_first_refresh",
        "async_subscribe_webhook",
        "async_unsubscribe_webhook",
        "async_shutdown",
        "async_set_temperature_state",
        "async_resume_program",
        "async_enable_program",
        "async_disable_program",
    ):
        setattr(coordinator, name, AsyncMock())
    return coordinator


def _make_runtime() -> ToonRuntimeData:
    return ToonRuntimeData(api=MagicMock(), coordinator=_make_coordinator())


def _make_hass() -> MagicMock:
    hass = MagicMock()
    hass.data = {}
    hass.config_entries.async_forward_entry_setups = AsyncMock()
    hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
    hass.services.has_service.return_value = True
    return hass


# ─── _resolve_runtime ──────────────────────────────────────────────────────


class TestResolveRuntime:
    def test_single_entry_is_default(self):
        hass = _make_hass()
        runtime = _make_runtime()
        hass.data[DOMAIN] = {"entry1": runtime}

        assert _resolve_runtime(hass, None) is runtime

    def test_explicit_entry(self):
        hass = _make_hass()
        first, second = _make_runtime(), _make_runtime()
        hass.data[DOMAIN] = {"entry1": first, "entry2": second}

        assert _resolve_runtime(hass, "entry2") is second

    def test_ambiguous_without_entry_id(self):
        hass = _make_hass()
        hass.data[DOMAIN] = {"entry1": _make_runtime(), "entry2": _make_runtime()}

        with pytest.raises(HomeAssistantError):
            _resolve_runtime(hass, None)

    def test_unknown_entry(self):
        hass = _make_hass()
        hass.data[DOMAIN] = {"entry1": _make_runtime()}

        with pytest.raises(HomeAssistantError):
            _resolve_runtime(hass, "missing")


# ─── Setup / unload ────────────────────────────────────────────────────────


@pytest.fixture
def setup_patches():
    coordinator = _make_coordinator()
    with (
        patch(
            f"{MODULE}.config_entry_oauth2_flow.async_get_config_entry_implementation",
            new=AsyncMock(),
        ),
        patch(f"{MODULE}.config_entry_oauth2_flow.OAuth2Session"),
        patch(f"{MODULE}.ToonApi"),
        patch(f"{MODULE}.ToonDataUpdateCoordinator.from_entry", return_value=coordinator),
        patch(f"{MODULE}.async_register_webhook", new=AsyncMock()) as mock_register,
        patch(f"{MODULE}.webhook_url") as mock_url,
    ):
        yield coordinator, mock_url, mock_register


class TestSetupEntry:
    @pytest.mark.asyncio
    async def test_setup_with_webhook(self, mock_config_entry, setup_patches):
        coordinator, mock_url, mock_register = setup_patches
        mock_url.return_value = CALLBACK_URL
        hass = _make_hass()

        assert await async_setup_entry(hass, mock_config_entry) is True

        coordinator.async_register_agreement.assert_awaited_once_with(AGREEMENT_ID)
        coordinator.async_config_entry_first_refresh.assert_awaited_once()
        mock_register.assert_awaited_once()
        coordinator.async_subscribe_webhook.assert_awaited_once_with(CALLBACK_URL)
        assert coordinator.update_interval == WEBHOOK_BACKUP_POLL_INTERVAL
        assert hass.data[DOMAIN][mock_config_entry.entry_id].coordinator is coordinator

    @pytest.mark.asyncio
    async def test_setup_polling_only(self, mock_config_entry, setup_patches):
        coordinator, mock_url, mock_register = setup_patches
        mock_url.return_value = None

        assert await async_setup_entry(_make_hass(), mock_config_entry) is True

        mock_register.assert_not_awaited()
        coordinator.async_subscribe_webhook.assert_not_awaited()
        assert coordinator.update_interval is None

    @pytest.mark.asyncio
    async def test_subscription_failure_keeps_polling(self, mock_config_entry, setup_patches):
        coordinator, mock_url, _ = setup_patches
        mock_url.return_value = CALLBACK_URL
        coordinator.async_subscribe_webhook.side_effect = ToonApiError("nope", status=400)

        assert await async_setup_entry(_make_hass(), mock_config_entry) is True
        assert coordinator.update_interval is None


class TestUnloadEntry:
    @pytest.mark.asyncio
    async def test_unload(self, mock_config_entry):
        hass = _make_hass()
        runtime = _make_runtime()
        hass.data[DOMAIN] = {mock_config_entry.entry_id: runtime}

        with patch(f"{MODULE}.async_unregister_webhook", new=AsyncMock()) as mock_unregister:
            assert await async_unload_entry(hass, mock_config_entry) is True

        runtime.coordinator.async_unsubscribe_webhook.assert_awaited_once()
        mock_unregister.assert_awaited_once_with(hass, mock_config_entry.entry_id)
        runtime.coordinator.async_shutdown.assert_awaited_once()
        assert hass.data[DOMAIN] == {}

    @pytest.mark.asyncio
    async def test_unsubscribe_failure_does_not_block_unload(self, mock_config_entry):
        hass = _make_hass()
        runtime = _make_runtime()
        runtime.coordinator.async_unsubscribe_webhook.side_effect = ToonApiError("gone", status=404)
        hass.data[DOMAIN] = {mock_config_entry.entry_id: runtime}

        with patch(f"{MODULE}.async_unregister_webhook", new=AsyncMock()):
            assert await async_unload_entry(hass, mock_config_entry) is True


# ─── Services ──────────────────────────────────────────────────────────────


def _registered_handlers(hass: MagicMock) -> dict:
    return {call.args[1]: call.args[2] for call in hass.services.async_register.call_args_list}


class TestServices:
    def test_registered_once(self):
        hass = _make_hass()
        _async_register_services(hass)
        hass.services.async_register.assert_not_called()

    @pytest.mark.asyncio
    async def test_handlers_reach_coordinator(self):
        hass = _make_hass()
        hass.services.has_service.return_value = False
        runtime = _make_runtime()
        hass.data[DOMAIN] = {"entry1": runtime}

        _async_register_services(hass)
        handlers = _registered_handlers(hass)

        await handlers[SERVICE_SET_TEMPERATURE_STATE](MagicMock(data={"state": "away"}))
        runtime.coordinator.async_set_temperature_state.assert_awaited_once_with(
            "away", resume_program=False
        )

        await handlers[SERVICE_RESUME_PROGRAM](MagicMock(data={}))
        runtime.coordinator.async_resume_program.assert_awaited_once()

        await handlers[SERVICE_ENABLE_PROGRAM](MagicMock(data={"config_entry_id": "entry1"}))
        runtime.coordinator.async_enable_program.assert_awaited_once()

        await handlers[SERVICE_DISABLE_PROGRAM](MagicMock(data={}))
        runtime.coordinator.async_disable_program.assert_awaited_once()
