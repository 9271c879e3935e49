"""Exceptions raised by the Shelly Plus RGBW PM integration."""

from homeassistant.exceptions import HomeAssistantError


class ShellyRgbwError(HomeAssistantError):
    """Base error for the integration."""


class ShellyRpcError(ShellyRgbwError):
    """An RPC call to a device failed.

    Covers transport failures, timeouts, unexpected HTTP status codes,
    malformed bodies and errors reported by the device itself.
    """


class ProfileError(ShellyRgbwError):
    """The device profile or accessory kind is not supported."""


class AccessoryResolutionError(ShellyRgbwError):
    """An accessory could not be matched to a configured device."""


class DiscoveryError(ShellyRgbwError):
    """No configured device could be discovered."""
