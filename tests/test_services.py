"""Tests for the network control services."""

from unittest.mock import AsyncMock, Mock

import pytest
import voluptuous as vol
from homeassistant.exceptions import HomeAssistantError

from custom_components.asuswrt_mesh.asuswrt_client import AsusWrtConnectionError
from custom_components.asuswrt_mesh.const import (
    DOMAIN,
    SERVICE_REBOOT_NETWORK,
    SERVICE_SET_LEDS,
    SERVICE_WAKE_ON_LAN,
)
from custom_components.asuswrt_mesh.models import WakeOnLanClient
from custom_components.asuswrt_mesh.services import (
    async_setup_services,
    async_unload_services,
    find_access_point,
)

from tests.conftest import NODE_MAC, ROUTER_MAC


@pytest.fixture
async def services(hass, registered_network):
    async_setup_services(hass)
    return registered_network


async def test_services_registered_once(hass, services):
    async_setup_services(hass)

    for service in (SERVICE_REBOOT_NETWORK, SERVICE_SET_LEDS, SERVICE_WAKE_ON_LAN):
        assert hass.services.has_service(DOMAIN, service)

    async_unload_services(hass)

    assert not hass.services.has_service(DOMAIN, SERVICE_REBOOT_NETWORK)


async def test_find_access_point(hass, services):
    coordinator, router_id, access_point_id = services

    assert find_access_point(hass, router_id)[1].mac == ROUTER_MAC
    found_coordinator, access_point = find_access_point(hass, access_point_id)
    assert found_coordinator is coordinator
    assert access_point.mac == NODE_MAC
    assert find_access_point(hass, "missing") is None


async def test_set_leds(hass, services):
    coordinator, _, access_point_id = services

    await hass.services.async_call(
        DOMAIN, SERVICE_SET_LEDS, {"device_id": access_point_id, "state": "off"}, blocking=True
    )

    coordinator.client.set_leds_enabled.assert_awaited_once_with(NODE_MAC, False)


async def test_set_leds_unknown_device(hass, services):
    with pytest.raises(HomeAssistantError):
        await hass.services.async_call(
            DOMAIN, SERVICE_SET_LEDS, {"device_id": "missing", "state": "on"}, blocking=True
        )


async def test_set_leds_invalid_state(hass, services):
    _, _, access_point_id = services

    with pytest.raises(vol.Invalid):
        await hass.services.async_call(
            DOMAIN,
            SERVICE_SET_LEDS,
            {"device_id": access_point_id, "state": "blink"},
            blocking=True,
        )


async def test_reboot_network(hass, services):
    coordinator, _, _ = services

    await hass.services.async_call(DOMAIN, SERVICE_REBOOT_NETWORK, {}, blocking=True)

    coordinator.client.reboot_network.assert_awaited_once()


async def test_reboot_network_router_error(hass, services):
    coordinator, router_id, _ = services
    coordinator.client.reboot_network.side_effect = AsusWrtConnectionError("refused")

    with pytest.raises(HomeAssistantError, match="Failed to reboot network"):
        await hass.services.async_call(
            DOMAIN, SERVICE_REBOOT_NETWORK, {"device_id": router_id}, blocking=True
        )


async def test_wake_on_lan(hass, services):
    coordinator, _, _ = services

    await hass.services.async_call(
        DOMAIN, SERVICE_WAKE_ON_LAN, {"mac": "44-44-44-44-44-44"}, blocking=True
    )

    coordinator.client.wake_on_lan.assert_awaited_once_with("44:44:44:44:44:44")


async def test_wake_on_lan_invalid_mac(hass, services):
    with pytest.raises(vol.Invalid):
        await hass.services.async_call(
            DOMAIN, SERVICE_WAKE_ON_LAN, {"mac": "not-a-mac"}, blocking=True
        )


async def test_wake_on_lan_through_device(hass, services):
    coordinator, _, access_point_id = services
    other = Mock()
    other.client = AsyncMock()
    hass.data[DOMAIN]["other_entry"] = other

    await hass.services.async_call(
        DOMAIN,
        SERVICE_WAKE_ON_LAN,
        {"mac": "44:44:44:44:44:44", "device_id": access_point_id},
        blocking=True,
    )

    coordinator.client.wake_on_lan.assert_awaited_once_with("44:44:44:44:44:44")
    other.client.wake_on_lan.assert_not_awaited()
    coordinator.async_wake_on_lan_clients.assert_not_awaited()


async def test_wake_on_lan_prefers_network_with_registered_client(hass, services):
    coordinator, _, _ = services
    other = Mock()
    other.client = AsyncMock()
    other.async_wake_on_lan_clients = AsyncMock(
        return_value=[WakeOnLanClient(name="NAS", mac="44:44:44:44:44:44")]
    )
    hass.data[DOMAIN]["other_entry"] = other

    await hass.services.async_call(
        DOMAIN, SERVICE_WAKE_ON_LAN, {"mac": "44:44:44:44:44:44"}, blocking=True
    )

    other.client.wake_on_lan.assert_awaited_once_with("44:44:44:44:44:44")
    coordinator.client.wake_on_lan.assert_not_awaited()
    coordinator.async_wake_on_lan_clients.assert_awaited_once_with("44:44:44:44:44:44")


async def test_wake_on_lan_unknown_device(hass, services):
    with pytest.raises(HomeAssistantError):
        await hass.services.async_call(
            DOMAIN,
            SERVICE_WAKE_ON_LAN,
            {"mac": "44:44:44:44:44:44", "device_id": "missing"},
            blocking=True,
        )


async def test_wake_on_lan_router_error(hass, services):
    coordinator, _, _ = services
    coordinator.client.wake_on_lan.side_effect = AsusWrtConnectionError("refused")

    with pytest.raises(HomeAssistantError, match="Failed to wake"):
        await hass.services.async_call(
            DOMAIN, SERVICE_WAKE_ON_LAN, {"mac": "44:44:44:44:44:44"}, blocking=True
        )
