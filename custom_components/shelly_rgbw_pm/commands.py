"""Serialized write commands for Shelly accessories."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import replace
import logging
from typing import TYPE_CHECKING, Any

from .colors import clamp_hue, clamp_percent, hsv_to_rgb, percent_to_byte
from .exceptions import AccessoryResolutionError, ProfileError
from .helper import resolve_accessory_device
from .profile import Profile
from .types import LightState, ShellyAccessory

if TYPE_CHECKING:
    from .bridge import AccessoryBridge
    from .coordinator import ShellyRgbwData

_LOGGER = logging.getLogger(__name__)

WHITE_MODE_SATURATION = 1

type Job = Callable[[], Awaitable[Any]]


class CommandQueue:
    """Run jobs one at a time per key, in submission order.

    Each key is drained by its own task, which exits once the key has no
    pending jobs left. A failing job does not stop the jobs behind it.
    """

    def __init__(self) -> None:
        """Initialize the queue."""
        self._pending: dict[str, deque[tuple[Job, asyncio.Future[Any]]]] = {}
        self._workers: dict[str, asyncio.Task[None]] = {}

    def __contains__(self, key: str) -> bool:
        """Return whether a key has queued or running jobs."""
        return key in self._workers

    def submit(self, key: str, job: Job) -> asyncio.Future[Any]:
        """Queue a job and return a future for its result."""
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending.setdefault(key, deque()).append((job, future))

        if key not in self._workers:
            self._workers[key] = asyncio.ensure_future(self._async_drain(key))

        return future

    async def async_run(self, key: str, job: Job) -> Any:
        """Queue a job and wait for its result."""
        return await self.submit(key, job)

    def discard(self, key: str) -> None:
        """Drop the jobs still waiting for a key.

        Their submitters get an AccessoryResolutionError. A job that is
        already running completes.
        """
        self._workers.pop(key, None)
        pending = self._pending.pop(key, None) or deque()
        while pending:
            _, future = pending.popleft()
            if not future.done():
                future.set_exception(
                    AccessoryResolutionError(f"Accessory {key} was removed")
                )

    async def _async_drain(self, key: str) -> None:
        worker = asyncio.current_task()
        pending = self._pending.get(key)

        try:
            while pending:
                job, future = pending.popleft()
                try:
                    result = await job()
                except Exception as exc:
                    _LOGGER.warning("Command for %s failed: %s", key, exc)
                    if not future.done():
                        future.set_exception(exc)
                else:
                    if not future.done():
                        future.set_result(result)
        finally:
            if self._workers.get(key) is worker:
                del self._workers[key]
                self._pending.pop(key, None)


def build_color_set_params(
    kind: Profile, state: LightState, on: bool = True
) -> dict[str, Any]:
    """Build the RGB.Set or RGBW.Set parameters for a state.

    Brightness is never sent as 0 so that turning on stays distinct from
    turning off. An RGBW light with saturation at or below the white mode
    threshold is driven through its white channel only.
    """
    brightness = max(1, clamp_percent(state.brightness))
    hue = clamp_hue(state.hue)
    saturation = clamp_percent(state.saturation)

    match kind:
        case Profile.RGBW if saturation <= WHITE_MODE_SATURATION:
            return {
                "id": 0,
                "on": on,
                "brightness": brightness,
                "rgb": [0, 0, 0],
                "white": percent_to_byte(brightness),
            }
        case Profile.RGBW:
            return {
                "id": 0,
                "on": on,
                "brightness": brightness,
                "rgb": list(hsv_to_rgb(hue, saturation, brightness)),
                "white": 0,
            }
        case Profile.RGB:
            return {
                "id": 0,
                "on": on,
                "brightness": brightness,
                "rgb": list(hsv_to_rgb(hue, saturation, brightness)),
            }
        case _:
            raise ProfileError(f"Unsupported color profile: {kind}")


def color_set_method(kind: Profile) -> str:
    """Return the RPC method that sets a color accessory."""
    match kind:
        case Profile.RGB:
            return "RGB.Set"
        case Profile.RGBW:
            return "RGBW.Set"
        case _:
            raise ProfileError(f"Unsupported color profile: {kind}")


class CommandSerializer:
    """Execute on/off, brightness, hue and saturation writes per accessory."""

    def __init__(self, data: ShellyRgbwData, bridge: AccessoryBridge) -> None:
        """Initialize the serializer."""
        self._data = data
        self._bridge = bridge

    async def async_set_on(self, accessory: ShellyAccessory, value: Any) -> None:
        """Turn an accessory on or off."""
        target = bool(value)
        await self._data.queue.async_run(
            accessory.uuid, lambda: self._async_set_on(accessory, target)
        )

    async def async_set_brightness(
        self, accessory: ShellyAccessory, value: Any
    ) -> None:
        """Set brightness in percent; 0 turns the accessory off."""
        target = clamp_percent(value)
        await self._data.queue.async_run(
            accessory.uuid, lambda: self._async_set_brightness(accessory, target)
        )

    async def async_set_hue(self, accessory: ShellyAccessory, value: Any) -> None:
        """Set hue in degrees."""
        target = clamp_hue(value)
        await self._data.queue.async_run(
            accessory.uuid, lambda: self._async_set_color(accessory, hue=target)
        )

    async def async_set_saturation(
        self, accessory: ShellyAccessory, value: Any
    ) -> None:
        """Set saturation in percent."""
        target = clamp_percent(value)
        await self._data.queue.async_run(
            accessory.uuid,
            lambda: self._async_set_color(accessory, saturation=target),
        )

    async def async_set_color(
        self, accessory: ShellyAccessory, hue: Any, saturation: Any
    ) -> None:
        """Set hue and saturation with a single device write."""
        target_hue = clamp_hue(hue)
        target_saturation = clamp_percent(saturation)
        await self._data.queue.async_run(
            accessory.uuid,
            lambda: self._async_set_color(
                accessory, hue=target_hue, saturation=target_saturation
            ),
        )

    async def _async_set_on(self, accessory: ShellyAccessory, target: bool) -> None:
        device = resolve_accessory_device(self._data, accessory)
        state = accessory.state

        if not target:
            next_state = replace(state, on=False)
            params = self._off_params(accessory)
        else:
            # A fully dimmed light would stay dark when switched on.
            brightness = state.brightness if state.brightness > 0 else 100
            next_state = replace(state, on=True, brightness=brightness)
            match accessory.kind:
                case Profile.LIGHT:
                    params = {"id": accessory.channel, "on": True}
                case _:
                    params = build_color_set_params(accessory.kind, next_state)

        await device.client.async_call(self._method(accessory), params)
        self._commit(accessory, next_state)

    async def _async_set_brightness(
        self, accessory: ShellyAccessory, target: int
    ) -> None:
        device = resolve_accessory_device(self._data, accessory)

        if target <= 0:
            next_state = replace(accessory.state, on=False, brightness=0)
            params = self._off_params(accessory)
        else:
            next_state = replace(accessory.state, on=True, brightness=target)
            match accessory.kind:
                case Profile.LIGHT:
                    params = {
                        "id": accessory.channel,
                        "on": True,
                        "brightness": target,
                    }
                case _:
                    params = build_color_set_params(accessory.kind, next_state)

        await device.client.async_call(self._method(accessory), params)
        self._commit(accessory, next_state)

    async def _async_set_color(
        self,
        accessory: ShellyAccessory,
        hue: int | None = None,
        saturation: int | None = None,
    ) -> None:
        if accessory.kind is Profile.LIGHT:
            _LOGGER.debug("Ignoring color change for dimmer %s", accessory.display_name)
            return

        device = resolve_accessory_device(self._data, accessory)
        next_state = replace(
            accessory.state,
            hue=accessory.state.hue if hue is None else hue,
            saturation=accessory.state.saturation if saturation is None else saturation,
        )

        if not next_state.on:
            accessory.state.merge(next_state)
            return

        params = build_color_set_params(accessory.kind, next_state)
        await device.client.async_call(color_set_method(accessory.kind), params)
        self._commit(accessory, next_state)

    def _method(self, accessory: ShellyAccessory) -> str:
        match accessory.kind:
            case Profile.LIGHT:
                return "Light.Set"
            case _:
                return color_set_method(accessory.kind)

    def _off_params(self, accessory: ShellyAccessory) -> dict[str, Any]:
        match accessory.kind:
            case Profile.LIGHT:
                return {"id": accessory.channel, "on": False}
            case _:
                return {"id": 0, "on": False}

    def _commit(self, accessory: ShellyAccessory, next_state: LightState) -> None:
        accessory.state.merge(next_state)
        self._bridge.push_state(accessory)
