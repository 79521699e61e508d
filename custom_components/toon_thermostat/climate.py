"""Climate platform for Toon Thermostat."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.climate import (
    PRESET_AWAY,
    PRESET_COMFORT,
    PRESET_HOME,
    PRESET_SLEEP,
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.core import HomeAssistant

from .const import (
    BURNER_HEATING,
    DOMAIN,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    PROGRAM_STATE_OFF,
    TEMPERATURE_STEP,
)
from .coordinator import ToonDataUpdateCoordinator
from .entity import ToonEntity

_LOGGER = logging.getLogger(__name__)

PRESET_MODES = [PRESET_COMFORT, PRESET_HOME, PRESET_SLEEP, PRESET_AWAY]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    runtime = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([ToonThermostat(runtime.coordinator)])


class ToonThermostat(ToonEntity, ClimateEntity):
    """The Toon display as a thermostat."""

    _attr_name = None
    _attr_temperature_unit = UnitOfTemperature.CELSIUS
    _attr_target_temperature_step = TEMPERATURE_STEP
    _attr_min_temp = MIN_TEMPERATURE
    _attr_max_temp = MAX_TEMPERATURE
    _attr_hvac_modes = [HVACMode.HEAT, HVACMode.AUTO]
    _attr_preset_modes = PRESET_MODES
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE | ClimateEntityFeature.PRESET_MODE
    )

    def __init__(self, coordinator: ToonDataUpdateCoordinator) -> None:
        super().__init__(coordinator, "climate")

    @property
    def current_temperature(self) -> float | None:
        return self._value("measure_temperature")

    @property
    def target_temperature(self) -> float | None:
        return self._value("target_temperature")

    @property
    def preset_mode(self) -> str | None:
        state = self._value("temperature_state")
        return state if state in PRESET_MODES else None

    @property
    def hvac_mode(self) -> HVACMode:
        program_state = self._value("program_state")
        if program_state is None or program_state == PROGRAM_STATE_OFF:
            return HVACMode.HEAT
        return HVACMode.AUTO

    @property
    def hvac_action(self) -> HVACAction | None:
        burner = self._value("burner_info")
        if burner is None:
            return None
        return HVACAction.HEATING if burner == BURNER_HEATING else HVACAction.IDLE

    async def async_set_temperature(self, **kwargs: Any) -> None:
        await self.coordinator.async_set_target_temperature(kwargs.get(ATTR_TEMPERATURE))

    async def async_set_preset_mode(self, preset_mode: str) -> None:
        await self.coordinator.async_set_temperature_state(preset_mode)

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        if hvac_mode == HVACMode.AUTO:
            await self.coordinator.async_enable_program()
        elif hvac_mode == HVACMode.HEAT:
            await self.coordinator.async_disable_program()
        else:
            _LOGGER.debug("Unsupported hvac_mode=%s for %s", hvac_mode, self.coordinator.display_common_name)
