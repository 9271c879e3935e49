"""Accessory topology reconciliation for configured Shelly devices."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .const import LIGHT_CHANNELS
from .exceptions import DiscoveryError, ProfileError, ShellyRgbwError, ShellyRpcError
from .helper import accessory_uuid, resolve_accessory_host
from .profile import Profile, determine_profile
from .sync import update_accessory_states
from .types import AccessoryDescriptor, LightState, ShellyAccessory, ShellyDevice

if TYPE_CHECKING:
    from .bridge import AccessoryBridge
    from .coordinator import ShellyRgbwData

_LOGGER = logging.getLogger(__name__)


def build_descriptors(device: ShellyDevice) -> list[AccessoryDescriptor]:
    """Derive the accessories a device should expose for its profile."""
    host = device.host

    match device.profile:
        case Profile.LIGHT:
            descriptors = [
                AccessoryDescriptor(
                    host=host,
                    kind=Profile.LIGHT,
                    channel=channel,
                    name=f"{device.display_name} Dimmer {channel + 1}",
                    uuid=accessory_uuid(host, Profile.LIGHT, channel),
                )
                for channel in range(LIGHT_CHANNELS)
                if device.show_dimmers[channel]
            ]
            if not descriptors:
                _LOGGER.warning(
                    "Shelly %s is in light profile but all dimmers are hidden",
                    host,
                )
            return descriptors
        case Profile.RGB | Profile.RGBW:
            return [
                AccessoryDescriptor(
                    host=host,
                    kind=device.profile,
                    channel=0,
                    name=device.display_name,
                    uuid=accessory_uuid(host, device.profile, 0),
                )
            ]
        case _:
            raise ProfileError(f"Shelly {host} has no usable profile")


class TopologyReconciler:
    """Keep registered accessories in line with each device's profile."""

    def __init__(self, data: ShellyRgbwData, bridge: AccessoryBridge) -> None:
        """Initialize the reconciler."""
        self._data = data
        self._bridge = bridge

    async def async_refresh_all(self) -> None:
        """Discover every configured device concurrently.

        Devices that fail are left undiscovered for the poll cycle to retry.
        """
        statuses: dict[str, dict[str, Any]] = {}

        async def _discover(device: ShellyDevice) -> None:
            try:
                statuses[device.host] = await self.async_refresh_device(
                    device, sync=False
                )
            except ShellyRgbwError as exc:
                _LOGGER.warning("Shelly discovery failed for %s: %s", device.host, exc)

        await asyncio.gather(
            *(_discover(device) for device in self._data.devices.values())
        )

        self.sync_accessories(self.collect_descriptors())

        for host, status in statuses.items():
            update_accessory_states(self._data, self._bridge, host, status)

        if not statuses:
            raise DiscoveryError("Could not discover any configured Shelly devices")

    async def async_refresh_device(
        self,
        device: ShellyDevice,
        cached_status: dict[str, Any] | None = None,
        sync: bool = True,
    ) -> dict[str, Any]:
        """Rebuild the descriptors of one device and return its status."""
        if cached_status is not None:
            status = cached_status
            device_info = await self._async_fetch_device_info(device)
        else:
            status, device_info = await asyncio.gather(
                device.client.async_get_status(),
                self._async_fetch_device_info(device),
            )

        device.device_info = device_info or {}
        if device.device_info:
            self._bridge.update_device_info(device)

        profile = determine_profile(status, device.device_info.get("profile"))

        if profile != device.profile:
            _LOGGER.info(
                "Shelly %s profile changed from %s to %s",
                device.host,
                device.profile,
                profile,
            )

        device.profile = profile
        device.descriptors = build_descriptors(device)
        device.discovered = True

        if sync:
            self.sync_accessories(self.collect_descriptors())
            update_accessory_states(self._data, self._bridge, device.host, status)

        return status

    async def _async_fetch_device_info(self, device: ShellyDevice) -> dict[str, Any]:
        try:
            return await device.client.async_get_device_info() or {}
        except ShellyRpcError as exc:
            _LOGGER.warning(
                "Shelly.GetDeviceInfo failed for %s: %s", device.host, exc
            )
            return {}

    def collect_descriptors(self) -> list[AccessoryDescriptor]:
        """Return the descriptors of every discovered device."""
        return [
            descriptor
            for device in self._data.devices.values()
            if device.discovered
            for descriptor in device.descriptors
        ]

    def sync_accessories(self, descriptors: list[AccessoryDescriptor]) -> None:
        """Register, update and remove accessories to match descriptors.

        Accessories of devices that have not been discovered yet are kept.
        """
        wanted = {descriptor.uuid: descriptor for descriptor in descriptors}

        for token, accessory in list(self._data.accessories.items()):
            if token in wanted:
                continue

            host = resolve_accessory_host(self._data, accessory)
            device = self._data.devices.get(host) if host else None
            if device is not None and not device.discovered:
                continue

            self._bridge.unregister(accessory)
            del self._data.accessories[token]
            self._data.queue.discard(token)
            _LOGGER.info("Removed accessory: %s", accessory.display_name)

        for descriptor in descriptors:
            if (existing := self._data.accessories.get(descriptor.uuid)) is not None:
                changed = (
                    existing.host != descriptor.host
                    or existing.kind != descriptor.kind
                    or existing.channel != descriptor.channel
                    or existing.display_name != descriptor.name
                )
                existing.host = descriptor.host
                existing.kind = descriptor.kind
                existing.channel = descriptor.channel
                existing.display_name = descriptor.name
                if changed:
                    self._bridge.update(existing)
                continue

            accessory = ShellyAccessory(
                uuid=descriptor.uuid,
                display_name=descriptor.name,
                host=descriptor.host,
                kind=descriptor.kind,
                channel=descriptor.channel,
                state=LightState(),
            )
            self._data.accessories[descriptor.uuid] = accessory
            self._bridge.register(accessory)
            _LOGGER.info("Added accessory: %s", descriptor.name)
