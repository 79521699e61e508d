"""Tests for the Toon climate and sensor entities."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from homeassistant.components.climate import HVACAction, HVACMode

from custom_components.toon_thermostat.climate import ToonThermostat
from custom_components.toon_thermostat.helpers import parse_status_update
from custom_components.toon_thermostat.sensor import SENSORS, ToonSensor

from .conftest import COMMON_NAME


def _make_coordinator(data=None) -> MagicMock:
    coordinator = MagicMock()
    coordinator.display_common_name = COMMON_NAME
    coordinator.data = data
    coordinator.async_set_target_temperature = AsyncMock(return_value=21.0)
    coordinator.async_set_temperature_state = AsyncMock()
    coordinator.async_enable_program = AsyncMock()
    coordinator.async_disable_program = AsyncMock()
    return coordinator


class TestThermostat:
    def test_reads_mirrored_state(self, status_payload):
        entity = ToonThermostat(_make_coordinator(parse_status_update(status_payload)))

        assert entity.unique_id == f"{COMMON_NAME}_climate"
        assert entity.current_temperature == 20.3
        assert entity.target_temperature == 20.5
        assert entity.preset_mode == "home"
        assert entity.hvac_mode == HVACMode.AUTO
        assert entity.hvac_action == HVACAction.HEATING

    def test_manual_mode_and_idle_burner(self):
        entity = ToonThermostat(
            _make_coordinator({"program_state": 0, "burner_info": "0", "temperature_state": "none"})
        )

        assert entity.hvac_mode == HVACMode.HEAT
        assert entity.hvac_action == HVACAction.IDLE
        assert entity.preset_mode is None

    def test_override_counts_as_program(self):
        entity = ToonThermostat(_make_coordinator({"program_state": 2}))
        assert entity.hvac_mode == HVACMode.AUTO

    def test_no_data_yet(self):
        entity = ToonThermostat(_make_coordinator())

        assert entity.current_temperature is None
        assert entity.hvac_action is None
        assert entity.hvac_mode == HVACMode.HEAT

    @pytest.mark.asyncio
    async def test_set_temperature(self):
        coordinator = _make_coordinator()
        await ToonThermostat(coordinator).async_set_temperature(temperature=21)
        coordinator.async_set_target_temperature.assert_awaited_once_with(21)

    @pytest.mark.asyncio
    async def test_set_preset(self):
        coordinator = _make_coordinator()
        await ToonThermostat(coordinator).async_set_preset_mode("sleep")
        coordinator.async_set_temperature_state.assert_awaited_once_with("sleep")

    @pytest.mark.asyncio
    async def test_set_hvac_mode(self):
        coordinator = _make_coordinator()
        entity = ToonThermostat(coordinator)

        await entity.async_set_hvac_mode(HVACMode.AUTO)
        coordinator.async_enable_program.assert_awaited_once()

        await entity.async_set_hvac_mode(HVACMode.HEAT)
        coordinator.async_disable_program.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unsupported_hvac_mode_ignored(self):
        coordinator = _make_coordinator()
        await ToonThermostat(coordinator).async_set_hvac_mode(HVACMode.COOL)

        coordinator.async_enable_program.assert_not_awaited()
        coordinator.async_disable_program.assert_not_awaited()


class TestSensors:
    def test_sensor_values(self, status_payload):
        coordinator = _make_coordinator(parse_status_update(status_payload))
        values = {d.key: ToonSensor(coordinator, d).native_value for d in SENSORS}

        assert values == {
            "measure_temperature": 20.3,
            "measure_power": 412,
            "meter_power": 6.5,
            "meter_gas": 2.45,
            "temperature_state": "home",
        }

    def test_unique_ids_per_display(self):
        coordinator = _make_coordinator()
        unique_ids = {ToonSensor(coordinator, d).unique_id for d in SENSORS}

        assert f"{COMMON_NAME}_meter_gas" in unique_ids
        assert len(unique_ids) == len(SENSORS)

    def test_missing_value(self):
        sensor = ToonSensor(_make_coordinator({}), SENSORS[0])
        assert sensor.native_value is None
