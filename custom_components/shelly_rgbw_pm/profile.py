"""Operating profile detection for Shelly Plus RGBW PM devices."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from .exceptions import ProfileError


class Profile(StrEnum):
    """Operating profile of a device, and kind of an accessory."""

    LIGHT = "light"
    RGB = "rgb"
    RGBW = "rgbw"
    UNKNOWN = "unknown"


_KNOWN_PROFILES = {
    profile.value: profile for profile in (Profile.LIGHT, Profile.RGB, Profile.RGBW)
}


def normalize_profile(value: Any) -> Profile | None:
    """Return the profile named by value, ignoring case and whitespace."""
    if not isinstance(value, str):
        return None
    return _KNOWN_PROFILES.get(value.strip().lower())


def determine_profile(
    status: Mapping[str, Any] | None, hint: Any = None
) -> Profile:
    """Classify a status snapshot into a profile.

    A valid hint from the device metadata always wins. Otherwise any
    ``light:<n>`` component means ``light``, then ``rgbw:0`` and ``rgb:0``
    are checked in that order.
    """
    if status is None:
        status = {}
    elif not isinstance(status, Mapping):
        raise ProfileError(f"Unexpected Shelly status payload: {status!r}")

    if (profile := normalize_profile(hint)) is not None:
        return profile

    keys = [key for key in status if isinstance(key, str)]

    if any(key.startswith("light:") for key in keys):
        return Profile.LIGHT

    if "rgbw:0" in keys:
        return Profile.RGBW

    if "rgb:0" in keys:
        return Profile.RGB

    raise ProfileError("Could not determine Shelly profile from status")
