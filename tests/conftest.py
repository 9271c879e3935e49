"""Shared fixtures for Shelly Plus RGBW PM tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.shelly_rgbw_pm.coordinator import ShellyRgbwData
from custom_components.shelly_rgbw_pm.profile import Profile
from custom_components.shelly_rgbw_pm.types import ShellyAccessory, ShellyDevice

LIGHT_STATUS: dict[str, Any] = {
    "sys": {"uptime": 10},
    "light:0": {"id": 0, "output": True, "brightness": 40},
    "light:1": {"id": 1, "output": False, "brightness": 75},
    "light:2": {"id": 2, "output": False, "brightness": 0},
    "light:3": {"id": 3, "output": False, "brightness": 100},
}

RGBW_STATUS: dict[str, Any] = {
    "sys": {"uptime": 10},
    "rgbw:0": {
        "id": 0,
        "output": True,
        "brightness": 60,
        "rgb": [255, 0, 0],
        "white": 0,
    },
}

RGB_STATUS: dict[str, Any] = {
    "sys": {"uptime": 10},
    "rgb:0": {"id": 0, "output": False, "brightness": 30, "rgb": [0, 255, 0]},
}


class FakeBridge:
    """Accessory bridge recording every call it receives."""

    def __init__(self) -> None:
        self.cached: dict[str, ShellyAccessory] = {}
        self.registered: list[ShellyAccessory] = []
        self.unregistered: list[ShellyAccessory] = []
        self.updated: list[ShellyAccessory] = []
        self.pushed: list[ShellyAccessory] = []
        self.availability: list[tuple[str, bool]] = []
        self.device_infos: list[tuple[str, dict[str, Any]]] = []

    async def async_load_accessories(self) -> dict[str, ShellyAccessory]:
        return dict(self.cached)

    def register(self, accessory: ShellyAccessory) -> None:
        self.registered.append(accessory)

    def unregister(self, accessory: ShellyAccessory) -> None:
        self.unregistered.append(accessory)

    def update(self, accessory: ShellyAccessory) -> None:
        self.updated.append(accessory)

    def push_state(self, accessory: ShellyAccessory) -> None:
        self.pushed.append(accessory)

    def set_available(self, host: str, available: bool) -> None:
        self.availability.append((host, available))

    def update_device_info(self, device: ShellyDevice) -> None:
        self.device_infos.append((device.host, dict(device.device_info)))


def make_client(
    status: dict[str, Any] | None = None,
    device_info: dict[str, Any] | None = None,
) -> MagicMock:
    """Create a mock RPC client answering with fixed payloads."""
    client = MagicMock()
    client.async_get_status = AsyncMock(return_value=status or {})
    client.async_get_device_info = AsyncMock(return_value=device_info or {})
    client.async_call = AsyncMock(return_value={"was_on": False})
    return client


def make_device(
    host: str = "192.168.1.50",
    name: str = "Living Room",
    status: dict[str, Any] | None = None,
    device_info: dict[str, Any] | None = None,
    show_dimmers: tuple[bool, bool, bool, bool] = (True, True, True, True),
    profile: Profile = Profile.UNKNOWN,
) -> ShellyDevice:
    """Create a configured device backed by a mock client."""
    return ShellyDevice(
        host=host,
        display_name=name,
        show_dimmers=show_dimmers,
        client=make_client(status, device_info),
        profile=profile,
    )


def make_accessory(
    host: str = "192.168.1.50",
    kind: Profile = Profile.RGBW,
    channel: int = 0,
    uuid: str = "accessory-uuid",
    **state: Any,
) -> ShellyAccessory:
    """Create an accessory, optionally overriding its cached state."""
    accessory = ShellyAccessory(
        uuid=uuid,
        display_name="Test Light",
        host=host,
        kind=kind,
        channel=channel,
    )
    for key, value in state.items():
        setattr(accessory.state, key, value)
    return accessory


@pytest.fixture
def bridge() -> FakeBridge:
    """Return a recording bridge."""
    return FakeBridge()


@pytest.fixture
def device() -> ShellyDevice:
    """Return a device in the rgbw profile."""
    return make_device(status=RGBW_STATUS)


@pytest.fixture
def data(device: ShellyDevice) -> ShellyRgbwData:
    """Return shared data holding a single device."""
    return ShellyRgbwData(devices={device.host: device})
