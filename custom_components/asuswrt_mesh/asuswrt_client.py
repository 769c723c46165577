"""HTTP client for ASUS routers and their AiMesh nodes."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import aiohttp
import async_timeout

from .const import BAND_5G, BAND_24G, DEFAULT_TIMEOUT
from .models import (
    ClientScope,
    ConnectedClient,
    Load,
    OperationMode,
    RouterInfo,
    TrafficData,
    WakeOnLanClient,
    WanStatus,
    normalize_mac,
)

_LOGGER = logging.getLogger(__name__)

USER_AGENT = "asusrouter-Android-DUTUtil-1.0.0.245"
TOKEN_KEY = "asus_token"
ERROR_KEY = "error_status"

LOGIN_PATH = "login.cgi"
GET_PATH = "appGet.cgi"
APPLY_PATH = "applyapp.cgi"

BYTES_PER_MEGABYTE = 1024 * 1024

_WOL_ENTRY = re.compile(r"<([^<>]*)>([0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5})")


class AsusWrtError(Exception):
    """Base exception for the AsusWRT client."""


class AsusWrtAuthenticationError(AsusWrtError):
    """Login was rejected."""


class AsusWrtTimeoutError(AsusWrtError):
    """Request timed out."""


class AsusWrtConnectionError(AsusWrtError):
    """Connection failed or the router answered with an error."""


def _parse_json(text: str) -> Dict[str, Any]:
    """Parse an appGet response; several hooks answer with one JSON object."""
    try:
        result = json.loads(text)
    except json.JSONDecodeError as ex:
        raise AsusWrtConnectionError(f"Invalid JSON response: {ex}") from ex
    if not isinstance(result, dict):
        raise AsusWrtConnectionError(f"Unexpected response format: {text[:100]}")
    return result


def _client_scope(is_wl: Any) -> ClientScope:
    """Map the isWL flag of the client list to a scope."""
    if str(is_wl) == "1":
        return ClientScope.WIRELESS_24G
    if str(is_wl) in ("2", "3"):
        return ClientScope.WIRELESS_5G
    return ClientScope.WIRED


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _by_node(value: Any) -> Dict[str, Any]:
    """Key a per-node hook result by normalized node MAC."""
    if not isinstance(value, dict):
        return {}
    return {normalize_mac(mac): entry for mac, entry in value.items()}


class AsusWrtClient:
    """Client for the ASUS router web API (login.cgi / appGet.cgi / applyapp.cgi).

    One instance is shared by every concurrent request of a polling tick.
    Requests for AiMesh nodes are sent to the node's own address once
    ``get_routers`` has resolved it.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the client."""
        self.base_url = base_url.rstrip("/")
        self.host = urlparse(self.base_url).hostname or self.base_url
        self.username = username
        self.password = password
        self.timeout = timeout
        self._session = session
        self._managed_session = session is None
        self._tokens: Dict[str, str] = {}
        self._login_locks: Dict[str, asyncio.Lock] = {}
        self._node_urls: Dict[str, str] = {}
        self._main_mac: Optional[str] = None

    @property
    def is_logged_in(self) -> bool:
        return self.base_url in self._tokens

    async def login(self, base_url: Optional[str] = None) -> None:
        """Authenticate against the router, or an AiMesh node, and keep its token."""
        base_url = base_url or self.base_url
        credentials = f"{self.username}:{self.password}".encode("utf-8")
        payload = f"login_authorization={base64.b64encode(credentials).decode('ascii')}"

        response_text = await self._make_request(
            f"{base_url}/{LOGIN_PATH}", payload, {"user-agent": USER_AGENT}
        )
        try:
            result = json.loads(response_text)
        except json.JSONDecodeError as ex:
            raise AsusWrtAuthenticationError(f"Invalid login response: {ex}") from ex

        token = result.get(TOKEN_KEY) if isinstance(result, dict) else None
        if not token:
            _LOGGER.error("Login failed for %s", base_url)
            raise AsusWrtAuthenticationError("Login failed")

        self._tokens[base_url] = token
        _LOGGER.debug("Successfully logged in to %s", base_url)

    async def _ensure_login(self, base_url: str) -> None:
        lock = self._login_locks.setdefault(base_url, asyncio.Lock())
        async with lock:
            if base_url not in self._tokens:
                await self.login(base_url)

    def _auth_headers(self, base_url: str) -> Dict[str, str]:
        return {"user-agent": USER_AGENT, "cookie": f"{TOKEN_KEY}={self._tokens.get(base_url)}"}

    async def _post(self, path: str, payload: str, node_mac: Optional[str] = None) -> str:
        """POST to the router (or a node), logging in again once if the token expired.

        Every node keeps its own session; a rejected token only resets the
        session of the address that rejected it.
        """
        base_url = self._node_urls.get(node_mac, self.base_url) if node_mac else self.base_url
        for attempt in range(2):
            await self._ensure_login(base_url)
            response_text = await self._make_request(
                f"{base_url}/{path}", payload, self._auth_headers(base_url)
            )
            if ERROR_KEY not in response_text[: len(ERROR_KEY) + 5]:
                return response_text

            _LOGGER.debug("Session expired on %s (attempt %d)", base_url, attempt + 1)
            self._tokens.pop(base_url, None)

        raise AsusWrtConnectionError(f"Not logged in to {base_url}")

    async def _app_get(self, hooks: str, node_mac: Optional[str] = None) -> str:
        return await self._post(GET_PATH, f"hook={hooks}", node_mac)

    async def _apply(self, command: Dict[str, Any], node_mac: Optional[str] = None) -> str:
        return await self._post(APPLY_PATH, json.dumps(command), node_mac)

    async def _make_request(self, url: str, payload: str, headers: Dict[str, str]) -> str:
        """Make an HTTP POST request and return the response body."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

        try:
            async with async_timeout.timeout(self.timeout):
                async with self._session.post(url, data=payload, headers=headers) as response:
                    if response.status != 200:
                        if response.status in (401, 403):
                            self._tokens.pop(url.rpartition("/")[0], None)
                            raise AsusWrtAuthenticationError(
                                f"HTTP {response.status} - Authentication failed for {self.host}"
                            )
                        error_text = await response.text()
                        raise AsusWrtConnectionError(f"HTTP {response.status}: {error_text}")
                    return await response.text()

        except asyncio.TimeoutError as ex:
            raise AsusWrtTimeoutError(f"Request timeout after {self.timeout} seconds") from ex
        except aiohttp.ClientError as ex:
            raise AsusWrtConnectionError(f"Connection error: {ex}") from ex

    async def get_routers(self) -> List[RouterInfo]:
        """Enumerate the router and its AiMesh nodes.

        The node answering on the configured address is the main router; every
        other node is an access point reached on its own address.
        """
        result = _parse_json(await self._app_get("get_cfg_clientlist();nvram_get(sw_mode)"))
        main_mode = OperationMode.from_sw_mode(result.get("sw_mode"))
        nodes = [
            node
            for node in result.get("get_cfg_clientlist", [])
            if isinstance(node, dict) and node.get("mac")
        ]
        if not nodes:
            return []

        main_node = next((node for node in nodes if node.get("ip") == self.host), nodes[0])
        self._main_mac = normalize_mac(main_node["mac"])
        scheme = urlparse(self.base_url).scheme or "http"

        routers: List[RouterInfo] = []
        for node in nodes:
            mac = normalize_mac(node["mac"])
            ip = node.get("ip", "")
            is_main = node is main_node
            if not is_main and ip:
                self._node_urls[mac] = f"{scheme}://{ip}"

            routers.append(
                RouterInfo(
                    mac=mac,
                    product_id=node.get("product_id", node.get("model_name", "")),
                    alias=node.get("alias", ""),
                    ip=ip,
                    online=str(node.get("online", "0")) == "1",
                    firmware_version=node.get("fwver", ""),
                    new_firmware_version=node.get("newfwver", ""),
                    operation_mode=main_mode if is_main else OperationMode.ACCESS_POINT,
                )
            )

        _LOGGER.debug("Found %d routers/access points on %s", len(routers), self.host)
        return routers

    def _clients_from_list(self, client_list: Dict[str, Any]) -> Dict[str, ConnectedClient]:
        """Build clients keyed by MAC from the get_clientlist hook."""
        clients: Dict[str, ConnectedClient] = {}
        for mac, info in client_list.items():
            if len(mac) != 17 or not isinstance(info, dict):
                continue
            if str(info.get("isOnline", "0")) != "1":
                continue
            mac = normalize_mac(mac)
            clients[mac] = ConnectedClient(
                mac=mac,
                ip=info.get("ip", ""),
                name=info.get("name", ""),
                nickname=info.get("nickName", ""),
                vendor=info.get("vendor", ""),
                rssi=_to_int(info.get("rssi")),
                scope=_client_scope(info.get("isWL")),
                access_point_mac=normalize_mac(info.get("amesh_papMac")),
            )
        return clients

    async def get_all_clients(self) -> List[ConnectedClient]:
        """Enumerate every client online anywhere on the network."""
        result = _parse_json(await self._app_get("get_clientlist()"))
        return list(self._clients_from_list(result.get("get_clientlist", {})).values())

    async def get_wired_clients(self, mac: str) -> List[ConnectedClient]:
        """Enumerate clients wired to one node."""
        result = _parse_json(await self._app_get("get_wiredclientlist();get_clientlist()"))
        known = self._clients_from_list(result.get("get_clientlist", {}))
        wired_macs = _by_node(result.get("get_wiredclientlist")).get(normalize_mac(mac), [])

        clients = []
        for client_mac in wired_macs:
            client_mac = normalize_mac(client_mac)
            client = known.get(client_mac, ConnectedClient(mac=client_mac))
            clients.append(self._rescoped(client, ClientScope.WIRED, mac))
        return clients

    async def get_wireless_clients(self, mac: str, band: str) -> List[ConnectedClient]:
        """Enumerate clients associated to one node on a band ("2G" or "5G")."""
        result = _parse_json(await self._app_get("get_wclientlist();get_clientlist()"))
        known = self._clients_from_list(result.get("get_clientlist", {}))
        node_bands = _by_node(result.get("get_wclientlist")).get(normalize_mac(mac), {})
        associated = node_bands.get(band, [])
        scope = ClientScope.WIRELESS_5G if band == BAND_5G else ClientScope.WIRELESS_24G

        # Newer firmware maps each client to its link details, older returns a list
        details = associated if isinstance(associated, dict) else {}

        clients = []
        for raw_mac in associated:
            client_mac = normalize_mac(raw_mac)
            client = known.get(client_mac, ConnectedClient(mac=client_mac))
            link = details.get(raw_mac)
            rssi = _to_int(link.get("rssi"), client.rssi) if isinstance(link, dict) else None
            clients.append(self._rescoped(client, scope, mac, rssi))
        return clients

    @staticmethod
    def _rescoped(
        client: ConnectedClient, scope: ClientScope, ap_mac: str, rssi: Optional[int] = None
    ) -> ConnectedClient:
        return ConnectedClient(
            mac=client.mac,
            ip=client.ip,
            name=client.name,
            nickname=client.nickname,
            vendor=client.vendor,
            rssi=client.rssi if rssi is None else rssi,
            scope=scope,
            access_point_mac=normalize_mac(ap_mac),
        )

    async def get_cpu_memory_load(self, mac: str) -> Load:
        """Return CPU and memory usage of one node."""
        result = _parse_json(
            await self._app_get("cpu_usage(appobj);memory_usage(appobj)", self._node(mac))
        )
        cpu = result.get("cpu_usage", {})
        total = sum(_to_int(v) for k, v in cpu.items() if k.endswith("_total"))
        usage = sum(_to_int(v) for k, v in cpu.items() if k.endswith("_usage"))
        memory = result.get("memory_usage", {})
        mem_total = _to_int(memory.get("mem_total"))
        mem_used = _to_int(memory.get("mem_used"))

        return Load(
            cpu_usage=round(usage / total * 100, 2) if total else 0.0,
            memory_usage=round(mem_used / mem_total * 100, 2) if mem_total else 0.0,
        )

    async def get_uptime(self, mac: str) -> int:
        """Return the uptime of one node in seconds."""
        response = await self._app_get("uptime()", self._node(mac))
        # uptime=Thu, 22 Jul 2021 14:32:38 +0200(375001 secs since boot)
        seconds = response.partition("(")[2].partition(" ")[0]
        try:
            return int(seconds)
        except ValueError as ex:
            raise AsusWrtConnectionError(f"Unexpected uptime response: {response[:100]}") from ex

    async def get_wan_status(self) -> WanStatus:
        """Return the WAN status of the main router."""
        response = await self._app_get("wanlink()")
        values: Dict[str, str] = {}
        for line in response.split("\n"):
            # function wanlink_ipaddr() { return '1.2.3.4';}
            if "return" in line and "wanlink_" in line:
                key = line.partition("(")[0].partition("_")[2]
                values[key] = line.rpartition(" ")[-1][:-2].replace("'", "")

        status = values.get("status")
        return WanStatus(
            ip_address=values.get("ipaddr", ""),
            status=_to_int(status, None) if status not in (None, "") else None,
            status_text=values.get("statusstr", ""),
            wan_type=values.get("type", ""),
        )

    async def get_total_traffic_data(self) -> TrafficData:
        """Return cumulative WAN traffic since boot in megabytes."""
        result = _parse_json(await self._app_get("netdev(appobj)"))
        counters = result.get("netdev", {})
        received = int(counters.get("INTERNET_rx", "0x0"), 16)
        sent = int(counters.get("INTERNET_tx", "0x0"), 16)
        return TrafficData(
            received=received / BYTES_PER_MEGABYTE,
            sent=sent / BYTES_PER_MEGABYTE,
        )

    async def reboot_network(self) -> None:
        """Reboot the router and every node."""
        await self._apply({"action_mode": "apply", "rc_service": "reboot"})
        _LOGGER.info("Reboot requested on %s", self.host)

    async def set_leds_enabled(self, mac: str, enabled: bool) -> None:
        """Turn the LEDs of one node on or off."""
        await self._apply(
            {
                "action_mode": "config_changed",
                "re_mac": normalize_mac(mac),
                "config": {"led_val": 1 if enabled else 0},
            }
        )

    async def get_wake_on_lan_list(self) -> List[WakeOnLanClient]:
        """Return the clients registered for wake-on-LAN."""
        result = _parse_json(await self._app_get("nvram_get(wollist)"))
        return [
            WakeOnLanClient(name=name, mac=normalize_mac(mac))
            for name, mac in _WOL_ENTRY.findall(result.get("wollist", ""))
        ]

    async def wake_on_lan(self, mac: str) -> None:
        """Send a wake-on-LAN packet to a client."""
        await self._apply({"action_mode": "wol_action", "dstmac": normalize_mac(mac)})

    def _node(self, mac: str) -> Optional[str]:
        """Return the node key for requests, None for the main router."""
        mac = normalize_mac(mac)
        return None if mac == self._main_mac else mac

    async def close(self) -> None:
        """Close the HTTP session if this client owns it."""
        self._tokens.clear()
        if self._managed_session and self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
