"""Data models returned by the AsusWRT client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ClientScope(str, Enum):
    """Scope a connected client was observed in."""

    NETWORK = "network"
    WIRED = "wired"
    WIRELESS_24G = "2.4ghz"
    WIRELESS_5G = "5ghz"


class OperationMode(str, Enum):
    """Operation mode of a router or access point."""

    ROUTER = "router"
    ACCESS_POINT = "access_point"

    @classmethod
    def from_sw_mode(cls, sw_mode: Optional[str]) -> OperationMode:
        """Map the firmware's sw_mode value to an operation mode.

        Only mode 1 routes traffic; repeater (2), access point (3) and
        media bridge (4) nodes have no WAN of their own.
        """
        if str(sw_mode) in ("1", "", "None"):
            return cls.ROUTER
        return cls.ACCESS_POINT


def normalize_mac(mac: Optional[str]) -> str:
    """Return a MAC address upper-cased and colon separated."""
    if not mac:
        return ""
    return mac.strip().upper().replace("-", ":")


@dataclass(frozen=True)
class ConnectedClient:
    """A device observed attached to the network at one point in time."""

    mac: str
    ip: str = ""
    name: str = ""
    nickname: str = ""
    vendor: str = ""
    rssi: int = 0
    scope: ClientScope = ClientScope.NETWORK
    access_point_mac: str = ""

    @property
    def display_name(self) -> str:
        """Return the best available name for the client."""
        return self.nickname or self.name or self.mac


@dataclass(frozen=True)
class RouterInfo:
    """A router or AiMesh node as reported by the main router."""

    mac: str
    product_id: str = ""
    alias: str = ""
    ip: str = ""
    online: bool = False
    firmware_version: str = ""
    new_firmware_version: str = ""
    operation_mode: OperationMode = OperationMode.ROUTER

    @property
    def display_name(self) -> str:
        """Return the name shown when selecting devices."""
        return f"{self.product_id} {self.alias}".strip()


@dataclass(frozen=True)
class Load:
    """CPU and memory usage in percent."""

    cpu_usage: float
    memory_usage: float


@dataclass(frozen=True)
class WanStatus:
    """State of the WAN uplink."""

    ip_address: str = ""
    status: Optional[int] = None
    status_text: str = ""
    wan_type: str = ""


@dataclass(frozen=True)
class TrafficData:
    """Cumulative WAN traffic counters in megabytes."""

    received: float
    sent: float


@dataclass(frozen=True)
class WakeOnLanClient:
    """A client registered for wake-on-LAN on the router."""

    name: str
    mac: str
