"""Access point devices registered with the integration."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from .const import ACCESS_POINT_CAPABILITIES, ROUTER_CAPABILITIES
from .models import OperationMode, normalize_mac
from .projector import DeviceState

_LOGGER = logging.getLogger(__name__)


def capabilities_for_mode(operation_mode: OperationMode) -> tuple[str, ...]:
    """Return the capabilities a device in the given mode advertises."""
    if operation_mode == OperationMode.ROUTER:
        return ROUTER_CAPABILITIES
    return ACCESS_POINT_CAPABILITIES


class AccessPointDevice:
    """One physical router or access point and its externally visible state.

    Capability writes are guarded: a device only stores values for the
    capabilities it advertises.
    """

    def __init__(
        self,
        mac: str,
        name: str,
        operation_mode: OperationMode,
        product_id: str = "",
        capabilities: Optional[Iterable[str]] = None,
    ) -> None:
        """Initialize the device."""
        self.mac = normalize_mac(mac)
        self.name = name
        self.product_id = product_id
        self.operation_mode = OperationMode(operation_mode)
        if capabilities is None:
            capabilities = capabilities_for_mode(self.operation_mode)
        self._capabilities = set(capabilities)
        self._values: Dict[str, Any] = {}
        self.available = True
        self.unavailable_reason: Optional[str] = None
        self.warning: Optional[str] = None
        self.state = DeviceState()

    def __repr__(self) -> str:
        return f"AccessPointDevice({self.mac!r}, {self.name!r}, {self.operation_mode.value})"

    @property
    def is_router(self) -> bool:
        """Return True when the device routes traffic and has a WAN."""
        return self.operation_mode == OperationMode.ROUTER

    @property
    def capabilities(self) -> frozenset[str]:
        """Return the advertised capabilities."""
        return frozenset(self._capabilities)

    def has_capability(self, capability: str) -> bool:
        return capability in self._capabilities

    def get_capability_value(self, capability: str) -> Any:
        return self._values.get(capability)

    def set_capability_value(self, capability: str, value: Any) -> None:
        """Store a capability value."""
        if capability not in self._capabilities:
            raise KeyError(f"{self.name} has no capability {capability}")
        self._values[capability] = value

    def set_available(self) -> None:
        if not self.available:
            _LOGGER.info("%s (%s) is available again", self.name, self.mac)
        self.available = True
        self.unavailable_reason = None

    def set_unavailable(self, reason: str) -> None:
        if self.available:
            _LOGGER.info("%s (%s) is unavailable: %s", self.name, self.mac, reason)
        self.available = False
        self.unavailable_reason = reason

    def set_warning(self, warning: Optional[str]) -> None:
        """Set or clear (``None``) the non-blocking warning."""
        self.warning = warning

    def is_client_connected(self, mac: str) -> bool:
        """Return True if a client is connected to this device in any scope."""
        mac = normalize_mac(mac)
        return any(client.mac == mac for client in self.state.all_clients())

    def as_dict(self) -> Dict[str, Any]:
        """Return a snapshot of the device for coordinator data."""
        return {
            "mac": self.mac,
            "name": self.name,
            "product_id": self.product_id,
            "operation_mode": self.operation_mode.value,
            "available": self.available,
            "unavailable_reason": self.unavailable_reason,
            "warning": self.warning,
            "capabilities": dict(self._values),
            "wired_clients": len(self.state.wired_clients),
            "wireless_24g_clients": len(self.state.wireless_24g_clients),
            "wireless_5g_clients": len(self.state.wireless_5g_clients),
        }
