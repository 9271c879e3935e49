"""Narrow interface between the accessory engine and Home Assistant."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import device_registry as dr, entity_registry as er
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.storage import Store

from .const import (
    DEFAULT_MODEL,
    DOMAIN,
    SIGNAL_ACCESSORY_UPDATED,
    SIGNAL_ADD_ACCESSORIES,
    SIGNAL_AVAILABILITY,
    SIGNAL_STATE_UPDATED,
    STORAGE_SAVE_DELAY,
    STORAGE_VERSION,
)
from .profile import Profile
from .types import ShellyAccessory, ShellyDevice

if TYPE_CHECKING:
    from .coordinator import ShellyRgbwData

_LOGGER = logging.getLogger(__name__)


class AccessoryBridge(Protocol):
    """Operations the engine needs from the host bridge."""

    async def async_load_accessories(self) -> dict[str, ShellyAccessory]:
        """Return the accessories persisted by a previous run."""

    def register(self, accessory: ShellyAccessory) -> None:
        """Expose a new accessory."""

    def unregister(self, accessory: ShellyAccessory) -> None:
        """Remove an accessory and forget it."""

    def update(self, accessory: ShellyAccessory) -> None:
        """Persist changed name, kind or channel of an accessory."""

    def push_state(self, accessory: ShellyAccessory) -> None:
        """Publish the cached state of an accessory."""

    def set_available(self, host: str, available: bool) -> None:
        """Publish whether the device at host is reachable."""

    def update_device_info(self, device: ShellyDevice) -> None:
        """Publish the metadata fetched from a device."""


class HomeAssistantBridge:
    """Accessory bridge backed by dispatcher signals and the entity registry."""

    def __init__(self, hass: HomeAssistant, entry_id: str, data: ShellyRgbwData) -> None:
        """Initialize the bridge."""
        self.hass = hass
        self.entry_id = entry_id
        self._data = data
        self._store: Store[dict[str, Any]] = Store(
            hass, STORAGE_VERSION, f"{DOMAIN}.{entry_id}"
        )

    async def async_load_accessories(self) -> dict[str, ShellyAccessory]:
        """Restore persisted accessories and claim orphaned registry entries."""
        stored = await self._store.async_load() or {}
        accessories: dict[str, ShellyAccessory] = {}

        for record in stored.get("accessories", []):
            try:
                accessory = ShellyAccessory.from_dict(record)
            except (KeyError, TypeError, ValueError):
                _LOGGER.warning("Skipping malformed cached accessory %s", record)
                continue
            accessories[accessory.uuid] = accessory

        ent_reg = er.async_get(self.hass)
        for entity_entry in er.async_entries_for_config_entry(ent_reg, self.entry_id):
            if entity_entry.domain != Platform.LIGHT:
                continue
            if entity_entry.unique_id in accessories:
                continue
            # No context survived; host and kind are inferred on reconciliation.
            accessories[entity_entry.unique_id] = ShellyAccessory(
                uuid=entity_entry.unique_id,
                display_name=entity_entry.original_name
                or entity_entry.name
                or entity_entry.unique_id,
                host="",
                kind=Profile.UNKNOWN,
            )

        return accessories

    @callback
    def register(self, accessory: ShellyAccessory) -> None:
        """Ask the light platform to add an entity for the accessory."""
        async_dispatcher_send(
            self.hass, f"{SIGNAL_ADD_ACCESSORIES}_{self.entry_id}", [accessory]
        )
        self._schedule_save()

    @callback
    def unregister(self, accessory: ShellyAccessory) -> None:
        """Remove the accessory's entity from the entity registry."""
        ent_reg = er.async_get(self.hass)
        if entity_id := ent_reg.async_get_entity_id(
            Platform.LIGHT, DOMAIN, accessory.uuid
        ):
            ent_reg.async_remove(entity_id)
        self._schedule_save()

    @callback
    def update(self, accessory: ShellyAccessory) -> None:
        """Refresh the accessory's entity after a rename."""
        async_dispatcher_send(
            self.hass, f"{SIGNAL_ACCESSORY_UPDATED}_{accessory.uuid}"
        )
        self._schedule_save()

    @callback
    def push_state(self, accessory: ShellyAccessory) -> None:
        """Write the accessory's cached state to its entity."""
        async_dispatcher_send(self.hass, f"{SIGNAL_STATE_UPDATED}_{accessory.uuid}")
        self._schedule_save()

    @callback
    def set_available(self, host: str, available: bool) -> None:
        """Forward device availability to its entities."""
        async_dispatcher_send(self.hass, f"{SIGNAL_AVAILABILITY}_{host}", available)

    @callback
    def update_device_info(self, device: ShellyDevice) -> None:
        """Copy model, MAC and firmware onto the registered device."""
        dev_reg = dr.async_get(self.hass)
        device_entry = dev_reg.async_get_device(identifiers={(DOMAIN, device.host)})
        if device_entry is None:
            return

        info = device.device_info
        _ = dev_reg.async_update_device(
            device_entry.id,
            model=info.get("model") or DEFAULT_MODEL,
            serial_number=info.get("mac") or device.host,
            sw_version=info.get("ver") or "unknown",
        )

    @callback
    def _schedule_save(self) -> None:
        self._store.async_delay_save(self._data_to_save, STORAGE_SAVE_DELAY)

    @callback
    def _data_to_save(self) -> dict[str, Any]:
        return {
            "accessories": [
                accessory.as_dict() for accessory in self._data.accessories.values()
            ]
        }
