"""Runtime coordinator for the Shelly Plus RGBW PM integration."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.event import async_track_time_interval

from .bridge import AccessoryBridge
from .commands import CommandQueue, CommandSerializer
from .const import DEFAULT_SCAN_INTERVAL
from .helper import resolve_accessory_host
from .sync import StateSynchronizer
from .topology import TopologyReconciler
from .types import ShellyAccessory, ShellyDevice

_LOGGER = logging.getLogger(__name__)


@dataclass
class ShellyRgbwData:
    """Process-lifetime state shared by the integration components."""

    devices: dict[str, ShellyDevice]
    accessories: dict[str, ShellyAccessory] = field(default_factory=dict)
    queue: CommandQueue = field(default_factory=CommandQueue)


class ShellyRgbwCoordinator:
    """Own the shared state and drive discovery, polling and commands."""

    def __init__(
        self,
        hass: HomeAssistant,
        data: ShellyRgbwData,
        bridge: AccessoryBridge,
        scan_interval: int = DEFAULT_SCAN_INTERVAL,
    ) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self.data = data
        self.bridge = bridge
        self.scan_interval = scan_interval
        self.reconciler = TopologyReconciler(data, bridge)
        self.synchronizer = StateSynchronizer(data, bridge, self.reconciler)
        self.commands = CommandSerializer(data, bridge)
        self._unsub_poll: Callable[[], None] | None = None

    async def async_load(self) -> None:
        """Restore the accessories persisted by a previous run."""
        self.data.accessories.update(await self.bridge.async_load_accessories())
        for accessory in self.data.accessories.values():
            resolve_accessory_host(self.data, accessory)
        _LOGGER.debug("Restored %d cached accessories", len(self.data.accessories))

    async def async_initialize(self) -> None:
        """Discover all devices, then start polling.

        Polling starts even when discovery fails so that devices can
        recover later.
        """
        try:
            await self.reconciler.async_refresh_all()
        finally:
            self.start_polling()

    @callback
    def start_polling(self, interval: int | None = None) -> None:
        """Start the periodic poll timer, replacing a running one."""
        self.stop_polling()
        self._unsub_poll = async_track_time_interval(
            self.hass,
            self._async_handle_poll,
            timedelta(seconds=interval or self.scan_interval),
        )

    @callback
    def stop_polling(self) -> None:
        """Cancel the poll timer."""
        if self._unsub_poll is not None:
            self._unsub_poll()
            self._unsub_poll = None

    async def _async_handle_poll(self, _now: datetime) -> None:
        try:
            await self.synchronizer.async_poll_serial()
        except Exception:
            _LOGGER.exception("Polling cycle failed")

    def device_for(self, accessory: ShellyAccessory) -> ShellyDevice | None:
        """Return the configured device owning an accessory, if any."""
        return self.data.devices.get(accessory.host)
