"""The Shelly Plus RGBW PM integration."""

from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant.components.persistent_notification import async_create
from homeassistant.config_entries import SOURCE_IMPORT
from homeassistant.const import CONF_HOST, CONF_NAME, CONF_SCAN_INTERVAL, Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.typing import ConfigType

from .bridge import HomeAssistantBridge
from .const import CONF_DEVICES, CONF_SHOW_DIMMERS, DEFAULT_SCAN_INTERVAL, DOMAIN
from .coordinator import ShellyRgbwCoordinator, ShellyRgbwData
from .exceptions import DiscoveryError
from .helper import parse_configured_devices
from .types import ShellyRgbwConfigEntry

_PLATFORMS: list[Platform] = [Platform.LIGHT]
_LOGGER = logging.getLogger(__name__)

_DIMMER_SCHEMA = {vol.Optional(key): cv.boolean for key in CONF_SHOW_DIMMERS}

DEVICE_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_HOST): cv.string,
        vol.Optional(CONF_NAME): cv.string,
        **_DIMMER_SCHEMA,
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Optional(CONF_NAME): cv.string,
                vol.Optional(CONF_HOST): cv.string,
                **_DIMMER_SCHEMA,
                vol.Optional(CONF_DEVICES, default=[]): vol.All(
                    cv.ensure_list, [DEVICE_SCHEMA]
                ),
                vol.Optional(
                    CONF_SCAN_INTERVAL, default=DEFAULT_SCAN_INTERVAL
                ): cv.positive_int,
            }
        )
    },
    extra=vol.ALLOW_EXTRA,
)


async def _notify_user_error(hass: HomeAssistant, title: str, message: str) -> None:
    notification_id = f"{DOMAIN}_{hash(title + message)}"

    async_create(
        hass,
        message,
        title=f"Shelly Plus RGBW PM: {title}",
        notification_id=notification_id,
    )


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Import the YAML configuration into a config entry."""
    if DOMAIN in config:
        hass.async_create_task(
            hass.config_entries.flow.async_init(
                DOMAIN, context={"source": SOURCE_IMPORT}, data=dict(config[DOMAIN])
            )
        )
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ShellyRgbwConfigEntry) -> bool:
    """Set up Shelly Plus RGBW PM from a config entry."""
    devices = parse_configured_devices(
        dict(entry.data), async_get_clientsession(hass)
    )
    if not devices:
        _LOGGER.error(
            "No Shelly devices configured. Set %s or add entries under %s",
            CONF_HOST,
            CONF_DEVICES,
        )
        return False

    scan_interval = entry.options.get(
        CONF_SCAN_INTERVAL, entry.data.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)
    )
    data = ShellyRgbwData(devices=devices)
    coordinator = ShellyRgbwCoordinator(
        hass,
        data,
        HomeAssistantBridge(hass, entry.entry_id, data),
        scan_interval=scan_interval,
    )
    await coordinator.async_load()
    entry.runtime_data = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, _PLATFORMS)

    async def _async_initialize() -> None:
        try:
            await coordinator.async_initialize()
        except DiscoveryError as exc:
            _LOGGER.error("Initial Shelly discovery failed: %s", exc)
            await _notify_user_error(hass, "Discovery Failed", str(exc))

    entry.async_on_unload(coordinator.stop_polling)
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    _ = entry.async_create_background_task(
        hass, _async_initialize(), f"{DOMAIN}_initialize_{entry.entry_id}"
    )
    return True


async def _async_update_listener(
    hass: HomeAssistant, entry: ShellyRgbwConfigEntry
) -> None:
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ShellyRgbwConfigEntry) -> bool:
    """Unload a config entry."""
    return await hass.config_entries.async_unload_platforms(entry, _PLATFORMS)
