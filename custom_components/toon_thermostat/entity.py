"""Entity base class for Toon Thermostat."""

from __future__ import annotations

from typing import Any

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import ToonDataUpdateCoordinator


class ToonEntity(CoordinatorEntity[ToonDataUpdateCoordinator]):
    """Base entity that reads its value from the coordinator's mirrored state."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: ToonDataUpdateCoordinator, key: str) -> None:
        super().__init__(coordinator)
        self._key = key
        self._attr_unique_id = f"{coordinator.display_common_name}_{key}"

    @property
    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            identifiers={(DOMAIN, self.coordinator.display_common_name)},
            name="Toon",
            manufacturer="Eneco",
            model="Toon",
        )

    def _value(self, key: str | None = None) -> Any:
        return (self.coordinator.data or {}).get(key or self._key)
