"""Map Shelly status snapshots onto cached accessory state."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
from typing import TYPE_CHECKING, Any

from .colors import clamp_byte, clamp_percent, rgb_to_hsv
from .exceptions import ShellyRgbwError
from .helper import resolve_accessory_host
from .profile import Profile, determine_profile
from .types import LightState, ShellyDevice

if TYPE_CHECKING:
    from .bridge import AccessoryBridge
    from .coordinator import ShellyRgbwData
    from .topology import TopologyReconciler

_LOGGER = logging.getLogger(__name__)


def _normalize_rgb_array(rgb: Any) -> tuple[int, int, int]:
    if not isinstance(rgb, (list, tuple)) or len(rgb) < 3:
        return 255, 255, 255
    return clamp_byte(rgb[0]), clamp_byte(rgb[1]), clamp_byte(rgb[2])


def normalize_light_status(status: Mapping[str, Any]) -> LightState:
    """Map a ``light:<n>`` status onto a light state."""
    on = bool(status.get("output"))
    brightness = status.get("brightness")
    return LightState(
        on=on,
        brightness=brightness if brightness is not None else (100 if on else 0),
        hue=0,
        saturation=0,
    )


def normalize_rgb_status(status: Mapping[str, Any]) -> LightState:
    """Map an ``rgb:0`` status onto a light state."""
    hue, saturation, value = rgb_to_hsv(*_normalize_rgb_array(status.get("rgb")))
    brightness = status.get("brightness")
    return LightState(
        on=bool(status.get("output")),
        brightness=brightness if brightness is not None else value,
        hue=hue,
        saturation=saturation,
    )


def normalize_rgbw_status(status: Mapping[str, Any]) -> LightState:
    """Map an ``rgbw:0`` status onto a light state.

    Zero color channels with a lit white channel report white mode, with
    brightness derived from the white level when the device omits it.
    """
    rgb = _normalize_rgb_array(status.get("rgb"))
    white = status.get("white")
    white = clamp_byte(white if white is not None else 0)
    has_color = any(channel > 0 for channel in rgb)

    hue, saturation, value = rgb_to_hsv(*rgb)
    fallback = value if has_color else clamp_percent(white / 255 * 100)
    brightness = status.get("brightness")
    brightness = brightness if brightness is not None else fallback

    if not has_color and white > 0:
        hue, saturation = 0, 0

    return LightState(
        on=bool(status.get("output")),
        brightness=brightness,
        hue=hue,
        saturation=saturation,
    )


def update_accessory_states(
    data: ShellyRgbwData,
    bridge: AccessoryBridge,
    host: str,
    status: Mapping[str, Any],
) -> None:
    """Apply a device status to every accessory of that device.

    A missing status component leaves the accessory untouched.
    """
    for accessory in list(data.accessories.values()):
        if resolve_accessory_host(data, accessory) != host:
            continue

        match accessory.kind:
            case Profile.LIGHT:
                component = status.get(f"light:{accessory.channel}")
                normalize = normalize_light_status
            case Profile.RGB:
                component = status.get("rgb:0")
                normalize = normalize_rgb_status
            case Profile.RGBW:
                component = status.get("rgbw:0")
                normalize = normalize_rgbw_status
            case _:
                continue

        if not isinstance(component, Mapping):
            continue

        if changed := accessory.state.merge(normalize(component)):
            _LOGGER.debug(
                "Accessory %s changed %s", accessory.display_name, ", ".join(changed)
            )
            bridge.push_state(accessory)


class StateSynchronizer:
    """Poll every device and keep accessory state current."""

    def __init__(
        self,
        data: ShellyRgbwData,
        bridge: AccessoryBridge,
        reconciler: TopologyReconciler,
    ) -> None:
        """Initialize the synchronizer."""
        self._data = data
        self._bridge = bridge
        self._reconciler = reconciler
        self._in_flight: asyncio.Task[None] | None = None

    async def async_poll_serial(self) -> None:
        """Run one poll cycle, or wait for the cycle already running."""
        if self._in_flight is None:
            task = asyncio.ensure_future(self.async_poll())
            task.add_done_callback(self._poll_done)
            self._in_flight = task

        await asyncio.shield(self._in_flight)

    def _poll_done(self, task: asyncio.Task[None]) -> None:
        if self._in_flight is task:
            self._in_flight = None

    async def async_poll(self) -> None:
        """Fetch the status of every device concurrently."""
        await asyncio.gather(
            *(self.async_poll_device(device) for device in self._data.devices.values())
        )

    async def async_poll_device(self, device: ShellyDevice) -> None:
        """Poll one device, rebuilding its accessories on a profile change."""
        try:
            status = await device.client.async_get_status()
            next_profile = determine_profile(status)

            if next_profile != device.profile:
                _LOGGER.info(
                    "Shelly %s profile changed from %s to %s, rebuilding accessories",
                    device.host,
                    device.profile,
                    next_profile,
                )
                await self._reconciler.async_refresh_device(
                    device, cached_status=status
                )
            else:
                update_accessory_states(self._data, self._bridge, device.host, status)
        except ShellyRgbwError as exc:
            _LOGGER.warning("Polling failed for %s: %s", device.host, exc)
            self._set_available(device, False)
            return

        self._set_available(device, True)

    def _set_available(self, device: ShellyDevice, available: bool) -> None:
        if device.available == available:
            return
        device.available = available
        self._bridge.set_available(device.host, available)
