"""Constants for the Shelly Plus RGBW PM integration."""

from typing import Final

DOMAIN = "shelly_rgbw_pm"
MANUFACTURER = "Shelly"
DEFAULT_NAME = "Shelly Plus RGBW PM"
DEFAULT_MODEL = "Shelly Plus RGBW PM"

CONF_DEVICES: Final = "devices"
CONF_SHOW_DIMMERS: Final = (
    "show_dimmer_1",
    "show_dimmer_2",
    "show_dimmer_3",
    "show_dimmer_4",
)

DEFAULT_SCAN_INTERVAL = 5
DEFAULT_TIMEOUT = 4.0

RPC_SOURCE = "homeassistant"
LIGHT_CHANNELS = 4

STORAGE_VERSION = 1
STORAGE_SAVE_DELAY = 10

SIGNAL_ADD_ACCESSORIES = f"{DOMAIN}_add_accessories"
SIGNAL_ACCESSORY_UPDATED = f"{DOMAIN}_accessory_updated"
SIGNAL_STATE_UPDATED = f"{DOMAIN}_state_updated"
SIGNAL_AVAILABILITY = f"{DOMAIN}_update_available"
