"""Helper functions for Shelly Plus RGBW PM."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any
import uuid

import aiohttp

from homeassistant.const import CONF_HOST, CONF_NAME

from .const import CONF_DEVICES, CONF_SHOW_DIMMERS, DEFAULT_NAME, LIGHT_CHANNELS
from .exceptions import AccessoryResolutionError
from .profile import Profile
from .rpc import ShellyRpcClient
from .types import ShellyAccessory, ShellyDevice

if TYPE_CHECKING:
    from .coordinator import ShellyRgbwData

_LOGGER = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_UUID_NAMESPACE = uuid.UUID("6f1d3c4e-5a0b-4c7e-9d2f-8b3a1e0c5d47")
_IDENTITIES: tuple[tuple[Profile, int], ...] = (
    *((Profile.LIGHT, channel) for channel in range(LIGHT_CHANNELS)),
    (Profile.RGB, 0),
    (Profile.RGBW, 0),
)


def sanitize_host(value: Any) -> str:
    """Strip whitespace, scheme and trailing slashes from a host."""
    if not isinstance(value, str):
        return ""
    return _SCHEME_RE.sub("", value.strip()).rstrip("/")


def normalize_name(value: Any) -> str:
    """Return a trimmed name, or an empty string."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def is_dimmer_enabled(config: dict[str, Any] | None, channel: int) -> bool:
    """Return whether a light channel should be exposed (default True)."""
    return not config or config.get(CONF_SHOW_DIMMERS[channel]) is not False


def parse_configured_devices(
    config: dict[str, Any],
    session: aiohttp.ClientSession,
) -> dict[str, ShellyDevice]:
    """Build the configured devices keyed by normalized host.

    Entries of the device list come first, followed by the legacy
    single-device ``host``. The first entry for a host wins.
    """
    devices: dict[str, ShellyDevice] = {}
    platform_name = normalize_name(config.get(CONF_NAME)) or DEFAULT_NAME

    for index, device_config in enumerate(config.get(CONF_DEVICES) or []):
        _add_configured_device(
            devices,
            device_config,
            session,
            fallback_name=f"{platform_name} {index + 1}",
            label=f"{CONF_DEVICES}[{index}]",
        )

    if config.get(CONF_HOST):
        _add_configured_device(
            devices, config, session, fallback_name=platform_name, label=CONF_HOST
        )

    return devices


def _add_configured_device(
    devices: dict[str, ShellyDevice],
    config: dict[str, Any],
    session: aiohttp.ClientSession,
    fallback_name: str,
    label: str,
) -> None:
    host = sanitize_host(config.get(CONF_HOST) if config else None)

    if not host:
        if label != CONF_HOST:
            _LOGGER.warning("Ignoring %s because host is missing", label)
        return

    if host in devices:
        _LOGGER.warning(
            "Duplicate Shelly host %s found in config, ignoring duplicate entry",
            host,
        )
        return

    show_dimmers = tuple(
        is_dimmer_enabled(config, channel) for channel in range(LIGHT_CHANNELS)
    )
    devices[host] = ShellyDevice(
        host=host,
        display_name=normalize_name(config.get(CONF_NAME)) or fallback_name or host,
        show_dimmers=show_dimmers,  # type: ignore[arg-type]
        client=ShellyRpcClient(session, host),
    )


def accessory_uuid(host: str, kind: Profile, channel: int) -> str:
    """Return the stable identity token of an accessory."""
    return str(uuid.uuid5(_UUID_NAMESPACE, f"{host}|{kind.value}|{channel}"))


def infer_identity(
    hosts: list[str], token: str
) -> tuple[str, Profile, int] | None:
    """Find the host, kind and channel whose identity token matches."""
    for host in hosts:
        for kind, channel in _IDENTITIES:
            if accessory_uuid(host, kind, channel) == token:
                return host, kind, channel
    return None


def resolve_accessory_host(data: ShellyRgbwData, accessory: ShellyAccessory) -> str:
    """Return the host owning an accessory, inferring it from its uuid."""
    if host := sanitize_host(accessory.host):
        return host

    identity = infer_identity(list(data.devices), accessory.uuid)
    if identity is None:
        return ""

    host, kind, channel = identity
    accessory.host = host
    if accessory.kind is Profile.UNKNOWN:
        accessory.kind = kind
        accessory.channel = channel
    return host


def resolve_accessory_device(
    data: ShellyRgbwData, accessory: ShellyAccessory
) -> ShellyDevice:
    """Return the configured device owning an accessory."""
    host = resolve_accessory_host(data, accessory)
    if not host:
        raise AccessoryResolutionError(
            f"Accessory {accessory.display_name} has no device host"
        )

    if (device := data.devices.get(host)) is None:
        raise AccessoryResolutionError(f"Shelly host {host} is not configured")

    return device
