"""Tests for the runtime coordinator and the Home Assistant bridge."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from custom_components.shelly_rgbw_pm.bridge import HomeAssistantBridge
from custom_components.shelly_rgbw_pm.const import DOMAIN, SIGNAL_STATE_UPDATED
from custom_components.shelly_rgbw_pm.coordinator import (
    ShellyRgbwCoordinator,
    ShellyRgbwData,
)
from custom_components.shelly_rgbw_pm.exceptions import DiscoveryError, ShellyRpcError
from custom_components.shelly_rgbw_pm.helper import accessory_uuid
from custom_components.shelly_rgbw_pm.profile import Profile
from tests.conftest import make_accessory, make_device


# ---------------------------------------------------------------------------
# ShellyRgbwCoordinator
# ---------------------------------------------------------------------------
class TestShellyRgbwCoordinator:
    """Test ShellyRgbwCoordinator."""

    @pytest.fixture(autouse=True)
    def _patch_interval(self):
        """Patch the poll timer."""
        with patch(
            "custom_components.shelly_rgbw_pm.coordinator.async_track_time_interval"
        ) as self.mock_track:
            self.mock_unsub = MagicMock()
            self.mock_track.return_value = self.mock_unsub
            yield

    async def test_load_resolves_cached_accessories(self, data, bridge) -> None:
        token = accessory_uuid("192.168.1.50", Profile.RGB, 0)
        bridge.cached = {
            token: make_accessory(host="", kind=Profile.UNKNOWN, uuid=token)
        }
        coordinator = ShellyRgbwCoordinator(MagicMock(), data, bridge)

        await coordinator.async_load()

        accessory = data.accessories[token]
        assert accessory.host == "192.168.1.50"
        assert accessory.kind is Profile.RGB
        assert coordinator.device_for(accessory) is data.devices["192.168.1.50"]

    async def test_initialize_starts_polling(self, data, bridge) -> None:
        hass = MagicMock()
        coordinator = ShellyRgbwCoordinator(hass, data, bridge, scan_interval=7)

        await coordinator.async_initialize()

        assert len(bridge.registered) == 1
        self.mock_track.assert_called_once()
        assert self.mock_track.call_args[0][2] == timedelta(seconds=7)

    async def test_polling_starts_when_discovery_fails(self, data, bridge) -> None:
        device = data.devices["192.168.1.50"]
        device.client.async_get_status.side_effect = ShellyRpcError("offline")
        coordinator = ShellyRgbwCoordinator(MagicMock(), data, bridge)

        with pytest.raises(DiscoveryError):
            await coordinator.async_initialize()

        self.mock_track.assert_called_once()

    async def test_stop_polling(self, data, bridge) -> None:
        coordinator = ShellyRgbwCoordinator(MagicMock(), data, bridge)
        coordinator.start_polling()

        coordinator.stop_polling()
        coordinator.stop_polling()

        self.mock_unsub.assert_called_once()

    async def test_poll_handler_logs_unexpected_errors(self, data, bridge) -> None:
        coordinator = ShellyRgbwCoordinator(MagicMock(), data, bridge)
        coordinator.synchronizer.async_poll_serial = AsyncMock(
            side_effect=RuntimeError("bug")
        )

        with patch(
            "custom_components.shelly_rgbw_pm.coordinator._LOGGER"
        ) as mock_logger:
            await coordinator._async_handle_poll(None)

        mock_logger.exception.assert_called_once()


# ---------------------------------------------------------------------------
# HomeAssistantBridge
# ---------------------------------------------------------------------------
class TestHomeAssistantBridge:
    """Test HomeAssistantBridge."""

    @pytest.fixture(autouse=True)
    def _patch_ha_helpers(self):
        """Patch storage, registry and dispatcher helpers."""
        with (
            patch("custom_components.shelly_rgbw_pm.bridge.Store") as mock_store_cls,
            patch("custom_components.shelly_rgbw_pm.bridge.er") as self.mock_er,
            patch(
                "custom_components.shelly_rgbw_pm.bridge.async_dispatcher_send"
            ) as self.mock_send,
        ):
            self.mock_store = mock_store_cls.return_value
            self.mock_store.async_load = AsyncMock(return_value=None)
            self.mock_er.async_entries_for_config_entry.return_value = []
            yield

    async def test_load_restores_stored_accessories(self) -> None:
        stored = make_accessory(on=True, brightness=30)
        self.mock_store.async_load.return_value = {
            "accessories": [stored.as_dict(), {"display_name": "broken"}]
        }
        bridge = HomeAssistantBridge(MagicMock(), "entry_1", ShellyRgbwData({}))

        accessories = await bridge.async_load_accessories()

        restored = accessories[stored.uuid]
        assert restored == stored
        assert len(accessories) == 1

    async def test_load_claims_registry_orphans(self) -> None:
        entity_entry = MagicMock()
        entity_entry.domain = "light"
        entity_entry.unique_id = "orphan-token"
        entity_entry.original_name = "Old Light"
        self.mock_er.async_entries_for_config_entry.return_value = [entity_entry]
        bridge = HomeAssistantBridge(MagicMock(), "entry_1", ShellyRgbwData({}))

        accessories = await bridge.async_load_accessories()

        orphan = accessories["orphan-token"]
        assert orphan.host == ""
        assert orphan.kind is Profile.UNKNOWN
        assert orphan.display_name == "Old Light"

    def test_push_state_dispatches_and_saves(self) -> None:
        hass = MagicMock()
        device = make_device()
        accessory = make_accessory()
        data = ShellyRgbwData({device.host: device}, {accessory.uuid: accessory})
        bridge = HomeAssistantBridge(hass, "entry_1", data)

        bridge.push_state(accessory)

        self.mock_send.assert_called_once_with(
            hass, f"{SIGNAL_STATE_UPDATED}_{accessory.uuid}"
        )
        self.mock_store.async_delay_save.assert_called_once()
        save = self.mock_store.async_delay_save.call_args[0][0]
        assert save()["accessories"][0]["uuid"] == accessory.uuid

    def test_unregister_removes_registry_entry(self) -> None:
        ent_reg = self.mock_er.async_get.return_value
        ent_reg.async_get_entity_id.return_value = "light.test_light"
        bridge = HomeAssistantBridge(MagicMock(), "entry_1", ShellyRgbwData({}))

        bridge.unregister(make_accessory())

        ent_reg.async_remove.assert_called_once_with("light.test_light")

    def test_update_device_info_refreshes_registry(self) -> None:
        device = make_device()
        device.device_info = {"model": "SNDC-0D4P10WW", "mac": "AABB", "ver": "1.4.4"}
        bridge = HomeAssistantBridge(MagicMock(), "entry_1", ShellyRgbwData({}))

        with patch("custom_components.shelly_rgbw_pm.bridge.dr") as mock_dr:
            dev_reg = mock_dr.async_get.return_value
            dev_reg.async_get_device.return_value.id = "device_1"

            bridge.update_device_info(device)

        dev_reg.async_get_device.assert_called_once_with(
            identifiers={(DOMAIN, device.host)}
        )
        dev_reg.async_update_device.assert_called_once_with(
            "device_1",
            model="SNDC-0D4P10WW",
            serial_number="AABB",
            sw_version="1.4.4",
        )

    def test_update_device_info_without_registry_entry(self) -> None:
        bridge = HomeAssistantBridge(MagicMock(), "entry_1", ShellyRgbwData({}))

        with patch("custom_components.shelly_rgbw_pm.bridge.dr") as mock_dr:
            dev_reg = mock_dr.async_get.return_value
            dev_reg.async_get_device.return_value = None

            bridge.update_device_info(make_device())

        dev_reg.async_update_device.assert_not_called()
