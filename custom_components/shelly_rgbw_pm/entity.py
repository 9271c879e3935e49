"""Base entity for the Shelly Plus RGBW PM integration."""

from __future__ import annotations

import logging

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import Entity

from .const import (
    DEFAULT_MODEL,
    DOMAIN,
    MANUFACTURER,
    SIGNAL_ACCESSORY_UPDATED,
    SIGNAL_AVAILABILITY,
    SIGNAL_STATE_UPDATED,
)
from .coordinator import ShellyRgbwCoordinator
from .types import ShellyAccessory

_LOGGER = logging.getLogger(__name__)


class ShellyRgbwEntity(Entity):
    """Entity bound to one accessory and the availability of its device."""

    _attr_should_poll = False

    def __init__(
        self, coordinator: ShellyRgbwCoordinator, accessory: ShellyAccessory
    ) -> None:
        """Initialize the entity."""
        super().__init__()
        self.coordinator = coordinator
        self.accessory = accessory
        self._attr_unique_id = accessory.uuid
        self._attr_name = accessory.display_name
        self._attr_device_info = self._build_device_info()

        device = coordinator.device_for(accessory)
        self._device_available = device.available if device else True

    def _build_device_info(self) -> DeviceInfo | None:
        host = self.accessory.host
        if not host:
            return None

        device = self.coordinator.device_for(self.accessory)
        device_info = device.device_info if device else {}
        return DeviceInfo(
            identifiers={(DOMAIN, host)},
            name=device.display_name if device else host,
            manufacturer=MANUFACTURER,
            model=device_info.get("model") or DEFAULT_MODEL,
            serial_number=device_info.get("mac") or host,
            sw_version=device_info.get("ver") or "unknown",
            configuration_url=f"http://{host}",
        )

    async def async_added_to_hass(self) -> None:
        """Subscribe to state, rename and availability signals."""
        await super().async_added_to_hass()

        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                f"{SIGNAL_STATE_UPDATED}_{self.accessory.uuid}",
                self._handle_state_update,
            )
        )
        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                f"{SIGNAL_ACCESSORY_UPDATED}_{self.accessory.uuid}",
                self._handle_accessory_update,
            )
        )
        if self.accessory.host:
            self.async_on_remove(
                async_dispatcher_connect(
                    self.hass,
                    f"{SIGNAL_AVAILABILITY}_{self.accessory.host}",
                    self._handle_device_availability,
                )
            )

    @callback
    def _handle_state_update(self) -> None:
        self.async_write_ha_state()

    @callback
    def _handle_accessory_update(self) -> None:
        self._attr_name = self.accessory.display_name
        self.async_write_ha_state()

    @callback
    def _handle_device_availability(self, available: bool) -> None:
        """Handle availability changes of the owning device."""
        _LOGGER.debug(
            "Device %s availability changed to %s for entity %s",
            self.accessory.host,
            available,
            getattr(self, "entity_id", "unknown"),
        )
        self._device_available = available
        self.async_write_ha_state()

    @property
    def available(self) -> bool:
        """Return True if the owning device answered its last poll."""
        return self._device_available
