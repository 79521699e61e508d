"""Sensor platform for Toon Thermostat."""

from __future__ import annotations

from dataclasses import dataclass

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import UnitOfEnergy, UnitOfPower, UnitOfTemperature, UnitOfVolume
from homeassistant.core import HomeAssistant

from .const import DOMAIN, TEMPERATURE_STATES
from .coordinator import ToonDataUpdateCoordinator
from .entity import ToonEntity


@dataclass(frozen=True, kw_only=True)
class ToonSensorEntityDescription(SensorEntityDescription):
    """Describes a Toon sensor backed by a key of the mirrored state."""


SENSORS: tuple[ToonSensorEntityDescription, ...] = (
    ToonSensorEntityDescription(
        key="measure_temperature",
        translation_key="measure_temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
    ),
    ToonSensorEntityDescription(
        key="measure_power",
        translation_key="measure_power",
        device_class=SensorDeviceClass.POWER,
        state_class=SensorStateClass.MEASUREMENT,
        native_unit_of_measurement=UnitOfPower.WATT,
    ),
    ToonSensorEntityDescription(
        key="meter_power",
        translation_key="meter_power",
        device_class=SensorDeviceClass.ENERGY,
        state_class=SensorStateClass.TOTAL_INCREASING,
        native_unit_of_measurement=UnitOfEnergy.KILO_WATT_HOUR,
    ),
    ToonSensorEntityDescription(
        key="meter_gas",
        translation_key="meter_gas",
        device_class=SensorDeviceClass.GAS,
        state_class=SensorStateClass.TOTAL_INCREASING,
        native_unit_of_measurement=UnitOfVolume.CUBIC_METERS,
    ),
    ToonSensorEntityDescription(
        key="temperature_state",
        translation_key="temperature_state",
        device_class=SensorDeviceClass.ENUM,
        options=list(TEMPERATURE_STATES),
    ),
)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    runtime = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(ToonSensor(runtime.coordinator, description) for description in SENSORS)


class ToonSensor(ToonEntity, SensorEntity):
    """A single reading of the Toon display."""

    entity_description: ToonSensorEntityDescription

    def __init__(
        self,
        coordinator: ToonDataUpdateCoordinator,
        description: ToonSensorEntityDescription,
    ) -> None:
        super().__init__(coordinator, description.key)
        self.entity_description = description

    @property
    def native_value(self):
        return self._value()
