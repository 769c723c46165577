"""Shared test fixtures and utilities."""

import logging
from datetime import timedelta
from unittest.mock import AsyncMock, Mock, patch

import pytest
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PASSWORD, CONF_USERNAME
from homeassistant.helpers import device_registry as dr
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.asuswrt_mesh.asuswrt_client import AsusWrtClient
from custom_components.asuswrt_mesh.const import (
    CONF_DEVICE_MAC,
    CONF_DEVICE_NAME,
    CONF_DEVICE_OPERATION_MODE,
    CONF_DEVICE_PRODUCT_ID,
    CONF_DEVICES,
    DOMAIN,
)
from custom_components.asuswrt_mesh.coordinator import AsusWrtCoordinator
from custom_components.asuswrt_mesh.device import AccessPointDevice
from custom_components.asuswrt_mesh.models import (
    ConnectedClient,
    Load,
    OperationMode,
    RouterInfo,
    TrafficData,
    WanStatus,
    normalize_mac,
)

ROUTER_MAC = "AA:AA:AA:AA:AA:01"
NODE_MAC = "AA:AA:AA:AA:AA:02"

LAPTOP = ConnectedClient(mac="11:11:11:11:11:11", ip="192.168.1.10", name="laptop", vendor="Dell")
PHONE = ConnectedClient(mac="22:22:22:22:22:22", ip="192.168.1.11", name="phone", rssi=-52)
TV = ConnectedClient(mac="33:33:33:33:33:33", ip="192.168.1.12", name="tv", nickname="Living TV")

CONFIG_DATA = {
    CONF_HOST: "http://192.168.1.1",
    CONF_USERNAME: "admin",
    CONF_PASSWORD: "secret",
    CONF_DEVICES: [
        {
            CONF_DEVICE_MAC: ROUTER_MAC,
            CONF_DEVICE_NAME: "RT-AX88U Main",
            CONF_DEVICE_PRODUCT_ID: "RT-AX88U",
            CONF_DEVICE_OPERATION_MODE: OperationMode.ROUTER.value,
        },
        {
            CONF_DEVICE_MAC: NODE_MAC,
            CONF_DEVICE_NAME: "RT-AX58U Upstairs",
            CONF_DEVICE_PRODUCT_ID: "RT-AX58U",
            CONF_DEVICE_OPERATION_MODE: OperationMode.ACCESS_POINT.value,
        },
    ],
}


def create_mock_entry_with_state(config_data, state, entry_id="test_entry", options=None):
    """Create a mock config entry with a specific state."""
    entry = Mock(spec=ConfigEntry)
    entry.domain = DOMAIN
    entry.data = config_data
    entry.entry_id = entry_id
    entry.state = state
    entry.options = options or {}
    entry.add_update_listener = Mock(return_value=Mock())
    entry.async_on_unload = Mock(return_value=Mock())
    return entry


def make_routers(node_online=True):
    """Return the inventory reported by the main router."""
    return [
        RouterInfo(
            mac=ROUTER_MAC,
            product_id="RT-AX88U",
            alias="Main",
            ip="192.168.1.1",
            online=True,
            firmware_version="3.0.0.4.388_22525",
            new_firmware_version="",
            operation_mode=OperationMode.ROUTER,
        ),
        RouterInfo(
            mac=NODE_MAC,
            product_id="RT-AX58U",
            alias="Upstairs",
            ip="192.168.1.2",
            online=node_online,
            firmware_version="3.0.0.4.388_22525",
            new_firmware_version="",
            operation_mode=OperationMode.ACCESS_POINT,
        ),
    ]


@pytest.fixture
def mock_client():
    """Create a mock AsusWrtClient serving a two node network."""
    client = AsyncMock(spec=AsusWrtClient)
    client.base_url = "http://192.168.1.1"
    client.get_routers.return_value = make_routers()
    client.get_all_clients.return_value = [LAPTOP, PHONE]

    wired = {ROUTER_MAC: [LAPTOP], NODE_MAC: []}
    wireless = {(ROUTER_MAC, "2G"): [], (ROUTER_MAC, "5G"): [], (NODE_MAC, "2G"): [PHONE]}

    client.get_wired_clients.side_effect = lambda mac: list(wired.get(mac, []))
    client.get_wireless_clients.side_effect = lambda mac, band: list(
        wireless.get((mac, band), [])
    )
    client.wired = wired
    client.wireless = wireless

    client.get_cpu_memory_load.return_value = Load(cpu_usage=12.5, memory_usage=40.0)
    client.get_uptime.return_value = 2 * 86400
    client.get_wan_status.return_value = WanStatus(
        ip_address="203.0.113.7", status=1, status_text="Connected", wan_type="dhcp"
    )
    client.get_total_traffic_data.side_effect = lambda: TrafficData(received=1000, sent=500)
    return client


@pytest.fixture
def mock_hass():
    """Create a mock Home Assistant instance."""
    hass = Mock()
    hass.data = {}
    hass.bus = Mock()
    return hass


@pytest.fixture
def mock_device_registry():
    """Patch the device registry used to resolve event device ids."""
    registry = Mock()
    registry.async_get_device = Mock(return_value=None)
    with patch(
        "custom_components.asuswrt_mesh.notifications.dr.async_get", return_value=registry
    ):
        yield registry


def make_coordinator(hass, client, config_data=None, options=None):
    """Create a coordinator without running the Home Assistant base initializer."""
    entry = create_mock_entry_with_state(config_data or CONFIG_DATA, None, options=options)
    with patch(
        "custom_components.asuswrt_mesh.coordinator.DataUpdateCoordinator.__init__",
        return_value=None,
    ):
        coordinator = AsusWrtCoordinator(
            hass,
            logging.getLogger(__name__),
            name="asuswrt_mesh_test",
            update_interval=timedelta(seconds=60),
            config_entry=entry,
            client=client,
        )
    coordinator.hass = hass
    coordinator.data = None
    coordinator.last_update_success = True
    coordinator.update_interval = timedelta(seconds=60)
    coordinator.traffic_sample_gap = 0
    return coordinator


def fired_events(hass):
    """Return the event data of every notification fired on the bus."""
    return [call.args[1] for call in hass.bus.async_fire.call_args_list]


def fired_types(hass):
    return [data["type"] for data in fired_events(hass)]


@pytest.fixture
async def registered_network(hass):
    """Register both access points in the device registry behind a mock coordinator.

    Returns the coordinator and the registry ids of the router and the access point.
    """
    entry = MockConfigEntry(domain=DOMAIN, data=CONFIG_DATA, entry_id="test_entry")
    entry.add_to_hass(hass)

    devices = {
        ROUTER_MAC: AccessPointDevice(ROUTER_MAC, "RT-AX88U Main", OperationMode.ROUTER),
        NODE_MAC: AccessPointDevice(NODE_MAC, "RT-AX58U Upstairs", OperationMode.ACCESS_POINT),
    }
    coordinator = Mock()
    coordinator.devices = devices
    coordinator.get_device = lambda mac: devices.get(normalize_mac(mac))
    coordinator.client = AsyncMock(spec=AsusWrtClient)
    coordinator.async_wake_on_lan_clients = AsyncMock(return_value=[])
    hass.data[DOMAIN] = {entry.entry_id: coordinator}

    registry = dr.async_get(hass)
    device_ids = [
        registry.async_get_or_create(
            config_entry_id=entry.entry_id, identifiers={(DOMAIN, mac)}, name=device.name
        ).id
        for mac, device in devices.items()
    ]
    return coordinator, device_ids[0], device_ids[1]
