"""Type definitions for the Shelly Plus RGBW PM integration."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING, Any

from homeassistant.config_entries import ConfigEntry

from .colors import clamp_hue, clamp_percent
from .profile import Profile, normalize_profile

if TYPE_CHECKING:
    from .coordinator import ShellyRgbwCoordinator
    from .rpc import ShellyRpcClient


@dataclass
class LightState:
    """Cached light state of one accessory.

    Brightness and saturation are percentages, hue is in degrees. Turning
    the light off keeps the other values for the next turn on.
    """

    on: bool = False
    brightness: int = 100
    hue: int = 0
    saturation: int = 0

    def __post_init__(self) -> None:
        self.on = bool(self.on)
        self.brightness = clamp_percent(self.brightness)
        self.hue = clamp_hue(self.hue)
        self.saturation = clamp_percent(self.saturation)

    def merge(self, other: LightState) -> list[str]:
        """Copy the values of other into this state, returning changed fields."""
        changed: list[str] = []
        for state_field in fields(self):
            value = getattr(other, state_field.name)
            if getattr(self, state_field.name) != value:
                setattr(self, state_field.name, value)
                changed.append(state_field.name)
        return changed

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LightState:
        """Build a state from its persisted form."""
        data = data or {}
        return cls(
            on=data.get("on", False),
            brightness=data.get("brightness", 100),
            hue=data.get("hue", 0),
            saturation=data.get("saturation", 0),
        )


@dataclass(frozen=True)
class AccessoryDescriptor:
    """An accessory that should exist for a device's current profile."""

    host: str
    kind: Profile
    channel: int
    name: str
    uuid: str


@dataclass
class ShellyAccessory:
    """An accessory exposed to Home Assistant with its persisted context."""

    uuid: str
    display_name: str
    host: str
    kind: Profile
    channel: int = 0
    state: LightState = field(default_factory=LightState)

    def as_dict(self) -> dict[str, Any]:
        """Return the persisted context record."""
        return {
            "uuid": self.uuid,
            "display_name": self.display_name,
            "host": self.host,
            "kind": self.kind.value,
            "channel": self.channel,
            "state": asdict(self.state),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShellyAccessory:
        """Restore an accessory from its persisted context record."""
        return cls(
            uuid=data["uuid"],
            display_name=data.get("display_name") or data["uuid"],
            host=data.get("host") or "",
            kind=normalize_profile(data.get("kind")) or Profile.UNKNOWN,
            channel=int(data.get("channel") or 0),
            state=LightState.from_dict(data.get("state")),
        )


@dataclass
class ShellyDevice:
    """A configured Shelly host and what was last learned about it."""

    host: str
    display_name: str
    show_dimmers: tuple[bool, bool, bool, bool]
    client: ShellyRpcClient
    profile: Profile = Profile.UNKNOWN
    device_info: dict[str, Any] = field(default_factory=dict)
    descriptors: list[AccessoryDescriptor] = field(default_factory=list)
    discovered: bool = False
    available: bool = True


type ShellyRgbwConfigEntry = ConfigEntry[ShellyRgbwCoordinator]
