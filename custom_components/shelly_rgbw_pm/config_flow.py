"""Config flow for the Shelly Plus RGBW PM integration."""

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry, ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_HOST, CONF_NAME, CONF_SCAN_INTERVAL
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import (
    CONF_DEVICES,
    CONF_SHOW_DIMMERS,
    DEFAULT_NAME,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
)
from .exceptions import ShellyRpcError
from .helper import normalize_name, sanitize_host
from .rpc import ShellyRpcClient

_LOGGER = logging.getLogger(__name__)

USER_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): cv.string,
        vol.Optional(CONF_NAME, default=DEFAULT_NAME): cv.string,
        **{vol.Optional(key, default=True): bool for key in CONF_SHOW_DIMMERS},
    }
)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle the options flow for Shelly Plus RGBW PM."""

    def __init__(self, config_entry: ConfigEntry) -> None:
        """Initialize the options flow."""
        self._config_entry = config_entry

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Manage the polling interval."""
        if user_input is not None:
            return self.async_create_entry(data=user_input)

        current = self._config_entry.options.get(
            CONF_SCAN_INTERVAL,
            self._config_entry.data.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
        )
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_SCAN_INTERVAL, default=current): vol.All(
                        vol.Coerce(int), vol.Range(min=1, max=3600)
                    ),
                }
            ),
        )


class ShellyRgbwConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Shelly Plus RGBW PM."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Add one device by host."""
        errors: dict[str, str] = {}

        if user_input is not None:
            host = sanitize_host(user_input[CONF_HOST])
            if not host:
                errors[CONF_HOST] = "invalid_host"
            else:
                await self.async_set_unique_id(host)
                self._abort_if_unique_id_configured()
                if host in self._configured_hosts():
                    return self.async_abort(reason="already_configured")

                client = ShellyRpcClient(async_get_clientsession(self.hass), host)
                try:
                    device_info = await client.async_get_device_info()
                except ShellyRpcError as exc:
                    _LOGGER.warning("Cannot reach Shelly device at %s: %s", host, exc)
                    errors["base"] = "cannot_connect"
                else:
                    name = normalize_name(user_input.get(CONF_NAME)) or DEFAULT_NAME
                    device = {CONF_HOST: host, CONF_NAME: name}
                    device.update(
                        {key: user_input.get(key, True) for key in CONF_SHOW_DIMMERS}
                    )
                    _LOGGER.info(
                        "Adding Shelly device %s (%s)",
                        host,
                        device_info.get("model", "unknown model")
                        if isinstance(device_info, dict)
                        else "unknown model",
                    )
                    return self.async_create_entry(
                        title=name,
                        data={CONF_NAME: name, CONF_DEVICES: [device]},
                    )

        return self.async_show_form(
            step_id="user", data_schema=USER_SCHEMA, errors=errors
        )

    def _configured_hosts(self, skip_unique_id: str | None = None) -> set[str]:
        """Return every host owned by an existing entry, YAML imports included."""
        hosts: set[str] = set()
        for entry in self.hass.config_entries.async_entries(DOMAIN):
            if skip_unique_id is not None and entry.unique_id == skip_unique_id:
                continue
            hosts.add(sanitize_host(entry.data.get(CONF_HOST)))
            for device in entry.data.get(CONF_DEVICES) or []:
                hosts.add(sanitize_host(device.get(CONF_HOST)))
        hosts.discard("")
        return hosts

    async def async_step_import(self, import_data: dict[str, Any]) -> ConfigFlowResult:
        """Import or refresh the YAML configuration."""
        owned = self._configured_hosts(skip_unique_id=DOMAIN)
        import_data = dict(import_data)
        if sanitize_host(import_data.get(CONF_HOST)) in owned:
            _LOGGER.warning(
                "Ignoring YAML host %s, it is configured in another entry",
                import_data.pop(CONF_HOST),
            )
        devices: list[dict[str, Any]] = []
        for device in import_data.get(CONF_DEVICES) or []:
            if sanitize_host(device.get(CONF_HOST)) in owned:
                _LOGGER.warning(
                    "Ignoring YAML device %s, it is configured in another entry",
                    device.get(CONF_HOST),
                )
                continue
            devices.append(device)
        import_data[CONF_DEVICES] = devices

        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured(updates=import_data)

        return self.async_create_entry(
            title=normalize_name(import_data.get(CONF_NAME)) or DEFAULT_NAME,
            data=import_data,
        )

    def is_matching(self, other_flow: "ConfigFlow") -> bool:
        """Check if another flow is matching this one."""
        return False

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: ConfigEntry,
    ) -> OptionsFlowHandler:
        """Create the options flow."""
        return OptionsFlowHandler(config_entry)
