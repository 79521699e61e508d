"""Helpers that map Toon status payloads onto integration state."""

from __future__ import annotations

import math
from typing import Any

from .const import TEMPERATURE_STATES

COMMUNICATION_ERROR = "communicationError"
COMMUNICATION_ERROR_DESCRIPTION = "Error communicating with Toon"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def centi_to_celsius(value: Any) -> float | None:
    """Convert a Toon temperature (hundredths of a degree) to °C with one decimal."""
    if value is None:
        return None
    try:
        return _round_half_up(float(value) / 100 * 10) / 10
    except (TypeError, ValueError, OverflowError):
        return None


def temperature_state_key(active_state: Any) -> str | None:
    """Return the state name for a vendor activeState id."""
    for key, state_id in TEMPERATURE_STATES.items():
        if state_id == active_state:
            return key
    return None


def temperature_state_id(state: str) -> int | None:
    return TEMPERATURE_STATES.get(str(state).lower())


def round_setpoint(temperature: float) -> float:
    """Round to the nearest half degree, the resolution the display accepts."""
    return _round_half_up(float(temperature) * 2) / 2


def _parse_thermostat_info(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {"thermostat_info": data}
    if "currentDisplayTemp" in data:
        result["measure_temperature"] = centi_to_celsius(data["currentDisplayTemp"])
    if "currentSetpoint" in data:
        result["target_temperature"] = centi_to_celsius(data["currentSetpoint"])
    if "activeState" in data:
        result["temperature_state"] = temperature_state_key(data["activeState"])
    if "programState" in data:
        result["program_state"] = data["programState"]
    if "burnerInfo" in data:
        result["burner_info"] = None if data["burnerInfo"] is None else str(data["burnerInfo"])
    return result


def _parse_power_usage(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {"power_usage": data}
    if "value" in data:
        result["measure_power"] = data["value"]
    if "dayUsage" in data and "dayLowUsage" in data:
        # Wh -> kWh
        result["meter_power"] = (data["dayUsage"] + data["dayLowUsage"]) / 1000
    return result


def _parse_gas_usage(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {"gas_usage": data}
    if "dayUsage" in data:
        # dm3 -> m3
        result["meter_gas"] = data["dayUsage"] / 1000
    return result


def parse_status_update(update_data_set: dict[str, Any] | None) -> dict[str, Any]:
    """Map the sections of a status payload to integration field names.

    Only sections present in the payload produce keys, so the result can be
    merged on top of the last-known state.
    """
    if not isinstance(update_data_set, dict):
        return {}

    result: dict[str, Any] = {}
    thermostat_info = update_data_set.get("thermostatInfo")
    if isinstance(thermostat_info, dict):
        result.update(_parse_thermostat_info(thermostat_info))

    power_usage = update_data_set.get("powerUsage")
    if isinstance(power_usage, dict):
        result.update(_parse_power_usage(power_usage))

    gas_usage = update_data_set.get("gasUsage")
    if isinstance(gas_usage, dict):
        result.update(_parse_gas_usage(gas_usage))

    return result


def merge_status(current: dict[str, Any] | None, update: dict[str, Any]) -> dict[str, Any]:
    """Return a new state dict with ``update`` applied on top of ``current``."""
    merged = dict(current or {})
    merged.update(update)
    return merged


def build_thermostat_payload(thermostat_info: dict[str, Any] | None, **changes: Any) -> dict[str, Any]:
    """Echo the last thermostat object with the requested field changes."""
    return {**(thermostat_info or {}), **changes}


def is_communication_error(body: Any) -> bool:
    """Detect the 500 body Toon returns when the display is unreachable."""
    if not isinstance(body, dict):
        return False
    return (
        body.get("type") == COMMUNICATION_ERROR
        or body.get("errorCode") == COMMUNICATION_ERROR
        or body.get("description") == COMMUNICATION_ERROR_DESCRIPTION
    )


def agreement_title(agreement: dict[str, Any], multiple: bool) -> str:
    """Build the entry title for an agreement."""
    if not multiple:
        return "Toon"
    city = str(agreement.get("city") or "")
    city = f"{city[:1]}{city[1:].lower()}"
    return (
        f"Toon: {agreement.get('street', '')} {agreement.get('houseNumber', '')}, "
        f"{agreement.get('postalCode', '')} {city}"
    ).strip()
