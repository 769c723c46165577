"""Data update coordinator for AsusWRT Mesh."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PASSWORD, CONF_USERNAME
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .asuswrt_client import AsusWrtAuthenticationError, AsusWrtClient, AsusWrtError
from .const import (
    BAND_5G,
    BAND_24G,
    CONF_COLLAPSE_ROAMING,
    CONF_DEVICE_MAC,
    CONF_DEVICE_NAME,
    CONF_DEVICE_OPERATION_MODE,
    CONF_DEVICE_PRODUCT_ID,
    CONF_DEVICES,
    CONF_SUPPRESS_INITIAL_TICKS,
    DEFAULT_COLLAPSE_ROAMING,
    DEFAULT_SUPPRESS_INITIAL_TICKS,
    DEFAULT_TIMEOUT,
    EVENT_DEVICE_CONNECTED_TO_NETWORK,
    EVENT_DEVICE_DISCONNECTED_FROM_NETWORK,
    MESSAGE_DEVICE_OFFLINE,
    MESSAGE_NETWORK_UNAVAILABLE,
    MESSAGE_PARTIAL_FAILURE,
    TRAFFIC_SAMPLE_GAP,
)
from .device import AccessPointDevice
from .diffing import client_tokens, diff_clients
from .models import ConnectedClient, OperationMode, RouterInfo, WakeOnLanClient, normalize_mac
from .notifications import NotificationDispatcher, NotificationQueue
from .projector import (
    project_clients,
    project_firmware,
    project_load,
    project_traffic,
    project_uptime,
    project_wan_status,
)

_LOGGER = logging.getLogger(__name__)

GROUP_CLIENTS = "clients"
GROUP_LOAD = "load"
GROUP_UPTIME = "uptime"
GROUP_WAN = "wan_status"
GROUP_TRAFFIC = "traffic"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one metric group fetched for a device."""

    name: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class NetworkState:
    """Network-wide client snapshot carried between ticks."""

    clients: List[ConnectedClient] = field(default_factory=list)
    updates: int = 0


class AsusWrtCoordinator(DataUpdateCoordinator):
    """Poll an ASUS router and its AiMesh nodes and project the results."""

    def __init__(
        self,
        hass: HomeAssistant,
        logger: logging.Logger,
        name: str,
        update_interval: timedelta,
        config_entry: ConfigEntry,
        client: Optional[AsusWrtClient] = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(hass, logger, name=name, update_interval=update_interval)

        self.config_entry = config_entry
        self.client = client or AsusWrtClient(
            config_entry.data[CONF_HOST],
            config_entry.data[CONF_USERNAME],
            config_entry.data[CONF_PASSWORD],
            timeout=DEFAULT_TIMEOUT,
        )
        self.dispatcher = NotificationDispatcher(hass)
        self.network = NetworkState()

        self.devices: Dict[str, AccessPointDevice] = {}
        for device_config in config_entry.data.get(CONF_DEVICES, []):
            device = AccessPointDevice(
                mac=device_config[CONF_DEVICE_MAC],
                name=device_config[CONF_DEVICE_NAME],
                operation_mode=OperationMode(
                    device_config.get(CONF_DEVICE_OPERATION_MODE, OperationMode.ACCESS_POINT)
                ),
                product_id=device_config.get(CONF_DEVICE_PRODUCT_ID, ""),
            )
            self.devices[device.mac] = device

        self.suppress_initial_ticks = config_entry.options.get(
            CONF_SUPPRESS_INITIAL_TICKS, DEFAULT_SUPPRESS_INITIAL_TICKS
        )
        self.collapse_roaming = config_entry.options.get(
            CONF_COLLAPSE_ROAMING, DEFAULT_COLLAPSE_ROAMING
        )
        self.traffic_sample_gap = TRAFFIC_SAMPLE_GAP

        self._tick_lock = asyncio.Lock()
        self._failed_fetches: Dict[str, List[str]] = {}

    async def _async_update_data(self) -> Dict[str, Any]:
        """Run one polling tick unless the previous one is still running."""
        if self._tick_lock.locked():
            _LOGGER.debug("Previous update still in progress, skipping this tick")
            return self.data or self._create_update_data_response()

        async with self._tick_lock:
            return await self._async_run_tick()

    async def _async_run_tick(self) -> Dict[str, Any]:
        _LOGGER.debug("Starting data update for %d devices", len(self.devices))
        queue = NotificationQueue()

        try:
            routers, clients = await asyncio.gather(
                self.client.get_routers(), self.client.get_all_clients()
            )
        except AsusWrtAuthenticationError as ex:
            self._mark_all_unavailable(MESSAGE_NETWORK_UNAVAILABLE)
            raise ConfigEntryAuthFailed(f"Authentication failed: {ex}") from ex
        except AsusWrtError as ex:
            self._mark_all_unavailable(MESSAGE_NETWORK_UNAVAILABLE)
            raise UpdateFailed(f"Error communicating with router: {ex}") from ex
        except Exception as ex:  # pylint: disable=broad-except
            self._mark_all_unavailable(MESSAGE_NETWORK_UNAVAILABLE)
            raise UpdateFailed(f"Unexpected response from router: {ex}") from ex

        self._update_network_clients(clients, queue)

        inventory = {router.mac: router for router in routers}
        devices = list(self.devices.values())
        device_queues = [NotificationQueue() for _ in devices]
        results = await asyncio.gather(
            *(
                self._async_update_device(device, inventory.get(device.mac), device_queue)
                for device, device_queue in zip(devices, device_queues)
            ),
            return_exceptions=True,
        )

        # Merge per-device queues in registration order
        for device, result, device_queue in zip(devices, results, device_queues):
            if isinstance(result, Exception):
                _LOGGER.error("Failed to update %s: %s", device.name, result)
                device.set_warning(MESSAGE_PARTIAL_FAILURE)
                self._failed_fetches[device.mac] = ["device"]
            queue.extend(device_queue)

        if self.collapse_roaming:
            queue.collapse_roaming()

        fired = self.dispatcher.async_dispatch(queue)
        _LOGGER.debug(
            "Update finished: %d network clients, %d notifications fired",
            len(self.network.clients),
            fired,
        )
        return self._create_update_data_response()

    def _update_network_clients(
        self, clients: List[ConnectedClient], queue: NotificationQueue
    ) -> None:
        """Diff the network-wide client snapshot and queue network events."""
        diff = diff_clients(self.network.clients, clients)
        for client in diff.departed:
            queue.append(EVENT_DEVICE_DISCONNECTED_FROM_NETWORK, client_tokens(client))
        if self.network.updates >= self.suppress_initial_ticks:
            for client in diff.arrived:
                queue.append(EVENT_DEVICE_CONNECTED_TO_NETWORK, client_tokens(client))

        self.network.clients = list(clients)
        self.network.updates += 1

    async def _async_update_device(
        self,
        device: AccessPointDevice,
        router: Optional[RouterInfo],
        queue: NotificationQueue,
    ) -> List[FetchResult]:
        """Refresh one device; metric groups fail independently."""
        if router is None or not router.online:
            device.set_unavailable(MESSAGE_DEVICE_OFFLINE)
            self._failed_fetches.pop(device.mac, None)
            return []

        device.set_available()
        if router.firmware_version:
            project_firmware(
                device, router.firmware_version, router.new_firmware_version, queue
            )

        groups = [
            self._async_fetch_group(device, GROUP_CLIENTS, self._async_update_clients, queue),
            self._async_fetch_group(device, GROUP_LOAD, self._async_update_load, queue),
            self._async_fetch_group(device, GROUP_UPTIME, self._async_update_uptime, queue),
        ]
        if device.is_router:
            groups.append(
                self._async_fetch_group(device, GROUP_WAN, self._async_update_wan_status, queue)
            )
            groups.append(
                self._async_fetch_group(device, GROUP_TRAFFIC, self._async_update_traffic, queue)
            )

        results: List[FetchResult] = await asyncio.gather(*groups)

        failed = [result.name for result in results if not result.ok]
        device.set_warning(MESSAGE_PARTIAL_FAILURE if failed else None)
        if failed:
            self._failed_fetches[device.mac] = failed
        else:
            self._failed_fetches.pop(device.mac, None)
        return results

    async def _async_fetch_group(
        self,
        device: AccessPointDevice,
        name: str,
        update: Callable[[AccessPointDevice, NotificationQueue], Awaitable[None]],
        queue: NotificationQueue,
    ) -> FetchResult:
        try:
            await update(device, queue)
        except Exception as ex:  # pylint: disable=broad-except
            _LOGGER.warning("Failed to fetch %s for %s: %s", name, device.name, ex)
            return FetchResult(name, ex)
        return FetchResult(name)

    async def _async_update_clients(
        self, device: AccessPointDevice, queue: NotificationQueue
    ) -> None:
        wired, wireless_24g, wireless_5g = await asyncio.gather(
            self.client.get_wired_clients(device.mac),
            self.client.get_wireless_clients(device.mac, BAND_24G),
            self.client.get_wireless_clients(device.mac, BAND_5G),
        )
        project_clients(
            device, wired, wireless_24g, wireless_5g, queue, self.suppress_initial_ticks
        )

    async def _async_update_load(self, device: AccessPointDevice, queue: NotificationQueue) -> None:
        project_load(device, await self.client.get_cpu_memory_load(device.mac), queue)

    async def _async_update_uptime(
        self, device: AccessPointDevice, queue: NotificationQueue
    ) -> None:
        project_uptime(device, await self.client.get_uptime(device.mac), queue)

    async def _async_update_wan_status(
        self, device: AccessPointDevice, queue: NotificationQueue
    ) -> None:
        project_wan_status(device, await self.client.get_wan_status(), queue)

    async def _async_update_traffic(
        self, device: AccessPointDevice, queue: NotificationQueue
    ) -> None:
        """Sample the WAN counters twice to derive the realtime rate."""
        first = await self.client.get_total_traffic_data()
        await asyncio.sleep(self.traffic_sample_gap)
        second = await self.client.get_total_traffic_data()
        project_traffic(device, first, second, queue)

    def _mark_all_unavailable(self, reason: str) -> None:
        _LOGGER.error("Network update failed, marking %d devices unavailable", len(self.devices))
        for device in self.devices.values():
            device.set_unavailable(reason)

    def _create_update_data_response(self) -> Dict[str, Any]:
        """Create standardized data update response dictionary."""
        return {
            "devices": {mac: device.as_dict() for mac, device in self.devices.items()},
            "network_clients": len(self.network.clients),
            "last_update": datetime.now(),
            "failed_fetches": {mac: list(names) for mac, names in self._failed_fetches.items()},
        }

    async def async_shutdown(self) -> None:
        """Shutdown the coordinator."""
        await super().async_shutdown()
        await self.client.close()

    def get_device(self, mac: str) -> Optional[AccessPointDevice]:
        """Get a registered access point by MAC address."""
        return self.devices.get(normalize_mac(mac))

    def get_failed_fetches(self, mac: str) -> List[str]:
        return list(self._failed_fetches.get(normalize_mac(mac), []))

    def is_client_connected(self, mac: str) -> bool:
        """Return True if a client is connected anywhere on the network."""
        mac = normalize_mac(mac)
        return any(client.mac == mac for client in self.network.clients)

    def autocomplete_clients(self, query: str) -> List[ConnectedClient]:
        """Return network clients whose ip, name, nickname or vendor contain the query."""
        search_for = query.upper()
        return [
            client
            for client in self.network.clients
            if search_for in client.ip.upper()
            or search_for in client.name.upper()
            or search_for in client.nickname.upper()
            or search_for in client.vendor.upper()
        ]

    async def async_wake_on_lan_clients(self, query: str = "") -> List[WakeOnLanClient]:
        """Return registered wake-on-LAN clients whose name or MAC contain the query."""
        search_for = query.upper()
        return [
            client
            for client in await self.client.get_wake_on_lan_list()
            if search_for in client.name.upper() or search_for in client.mac.upper()
        ]
