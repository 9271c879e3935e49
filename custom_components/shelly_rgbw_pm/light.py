"""Platform for Shelly Plus RGBW PM lights."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_HS_COLOR,
    ColorMode,
    LightEntity,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .colors import byte_to_percent, percent_to_byte
from .const import SIGNAL_ADD_ACCESSORIES
from .coordinator import ShellyRgbwCoordinator
from .entity import ShellyRgbwEntity
from .profile import Profile
from .types import ShellyAccessory, ShellyRgbwConfigEntry

_LOGGER = logging.getLogger(__name__)

PARALLEL_UPDATES = 0


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ShellyRgbwConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up lights for cached accessories and for accessories added later."""
    coordinator = entry.runtime_data

    async_add_entities(
        ShellyRgbwLight(coordinator, accessory)
        for accessory in coordinator.data.accessories.values()
    )

    @callback
    def _async_add_accessories(accessories: list[ShellyAccessory]) -> None:
        _LOGGER.debug("Adding %d light entities", len(accessories))
        async_add_entities(
            ShellyRgbwLight(coordinator, accessory) for accessory in accessories
        )

    entry.async_on_unload(
        async_dispatcher_connect(
            hass, f"{SIGNAL_ADD_ACCESSORIES}_{entry.entry_id}", _async_add_accessories
        )
    )


class ShellyRgbwLight(ShellyRgbwEntity, LightEntity):
    """A dimmer channel or the color output of a Shelly Plus RGBW PM."""

    def __init__(
        self, coordinator: ShellyRgbwCoordinator, accessory: ShellyAccessory
    ) -> None:
        """Initialize the light entity."""
        super().__init__(coordinator, accessory)
        self._attr_extra_state_attributes = {
            "host": accessory.host,
            "kind": accessory.kind.value,
            "channel": accessory.channel,
        }

    @property
    def _is_color(self) -> bool:
        return self.accessory.kind in (Profile.RGB, Profile.RGBW)

    @property
    def color_mode(self) -> ColorMode:
        """Return the color mode of the light."""
        return ColorMode.HS if self._is_color else ColorMode.BRIGHTNESS

    @property
    def supported_color_modes(self) -> set[ColorMode]:
        """Return the supported color modes."""
        return {self.color_mode}

    @property
    def is_on(self) -> bool:
        """Return true if the light is on."""
        return self.accessory.state.on

    @property
    def brightness(self) -> int:
        """Return the brightness on Home Assistant's 0-255 scale."""
        return percent_to_byte(self.accessory.state.brightness)

    @property
    def hs_color(self) -> tuple[float, float] | None:
        """Return hue and saturation of a color light."""
        if not self._is_color:
            return None
        state = self.accessory.state
        return float(state.hue), float(state.saturation)

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn on the light, applying color before brightness."""
        commands = self.coordinator.commands
        color_sent = False

        if (hs_color := kwargs.get(ATTR_HS_COLOR)) is not None and self._is_color:
            await commands.async_set_color(self.accessory, hs_color[0], hs_color[1])
            # The color write of a lit light already carries on and brightness.
            color_sent = self.accessory.state.on

        if (brightness := kwargs.get(ATTR_BRIGHTNESS)) is not None:
            # Any non-zero Home Assistant brightness keeps the light on.
            percent = byte_to_percent(brightness)
            await commands.async_set_brightness(
                self.accessory, max(1, percent) if brightness > 0 else 0
            )
        elif not color_sent:
            await commands.async_set_on(self.accessory, True)

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn off the light."""
        await self.coordinator.commands.async_set_on(self.accessory, False)
