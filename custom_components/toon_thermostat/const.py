"""Constants for the Toon Thermostat integration."""

from __future__ import annotations

from datetime import timedelta
from typing import Final

DOMAIN: Final = "toon_thermostat"

TOON_API_BASE: Final = "https://api.toon.eu/toon/v3"
OAUTH2_AUTHORIZE_URL: Final = "https://api.toon.eu/authorize"
OAUTH2_TOKEN_URL: Final = "https://api.toon.eu/token"

# Config entry keys
CONF_AGREEMENT_ID: Final = "agreement_id"
CONF_DISPLAY_COMMON_NAME: Final = "display_common_name"
CONF_SCAN_INTERVAL: Final = "scan_interval"
CONF_CONFIG_ENTRY_ID: Final = "config_entry_id"

# Vendor "activeState" ids. "none" means a manual setpoint without a preset.
TEMPERATURE_STATES: Final[dict[str, int]] = {
    "comfort": 0,
    "home": 1,
    "sleep": 2,
    "away": 3,
    "none": -1,
}

# Vendor "programState" ids
PROGRAM_STATE_OFF: Final = 0
PROGRAM_STATE_ON: Final = 1
PROGRAM_STATE_OVERRIDE: Final = 2

BURNER_HEATING: Final = "1"

# --- POLLING CONFIGURATION ---
DEFAULT_SCAN_INTERVAL: Final = timedelta(seconds=60)
# When webhooks are active, polling backs off to this interval (consistency check).
WEBHOOK_BACKUP_POLL_INTERVAL: Final = timedelta(minutes=15)

# --- WEBHOOK / REAL-TIME UPDATES ---
WEBHOOK_SUBSCRIPTION_REFRESH: Final = timedelta(minutes=15)
WEBHOOK_DEBOUNCE_SECONDS: Final = 0.5
WEBHOOK_SUBSCRIBED_ACTIONS: Final[list[str]] = ["Thermostat", "PowerUsage", "GasUsage"]

# --- RESILIENCE ---
AGREEMENT_RETRY_DELAY: Final = 15
AGREEMENT_MAX_ATTEMPTS: Final = 4
SETPOINT_RETRY_DELAY: Final = 3
# More consecutive 401 responses than this and the entry needs re-authentication.
MAX_UNAUTHENTICATED_RESPONSES: Final = 6
# More consecutive communication errors than this and entities go unavailable.
MAX_UNAVAILABLE_UPDATES: Final = 3

MIN_TEMPERATURE: Final = 6.0
MAX_TEMPERATURE: Final = 30.0
TEMPERATURE_STEP: Final = 0.5

# Platforms
PLATFORMS: Final[list[str]] = [
    "climate",
    "sensor",
]
