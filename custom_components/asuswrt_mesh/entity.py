"""Base entity for AsusWRT Mesh access points."""

from __future__ import annotations

from typing import Any, Dict

from homeassistant.helpers.device_registry import CONNECTION_NETWORK_MAC, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    ATTR_FAILED_FETCHES,
    ATTR_UNAVAILABLE_REASON,
    CAP_FIRMWARE_VERSION,
    DOMAIN,
    MANUFACTURER,
)
from .coordinator import AsusWrtCoordinator
from .device import AccessPointDevice


class AsusWrtEntity(CoordinatorEntity[AsusWrtCoordinator]):
    """Entity bound to one capability of one access point."""

    def __init__(
        self, coordinator: AsusWrtCoordinator, device: AccessPointDevice, key: str, name: str
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._device = device
        self._key = key

        safe_mac = device.mac.lower().replace(":", "")
        self._attr_unique_id = f"{DOMAIN}_{safe_mac}_{key}"
        self._attr_name = f"{device.name} {name}"
        self._attr_has_entity_name = False

    @property
    def device_info(self) -> DeviceInfo:
        """Return device info for the access point."""
        return DeviceInfo(
            identifiers={(DOMAIN, self._device.mac)},
            connections={(CONNECTION_NETWORK_MAC, self._device.mac.lower())},
            name=self._device.name,
            manufacturer=MANUFACTURER,
            model=self._device.product_id or None,
            sw_version=self._device.get_capability_value(CAP_FIRMWARE_VERSION),
            configuration_url=self.coordinator.client.base_url,
        )

    @property
    def available(self) -> bool:
        """Return if entity is available."""
        return self.coordinator.last_update_success and self._device.available

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}
        if self._device.unavailable_reason:
            attributes[ATTR_UNAVAILABLE_REASON] = self._device.unavailable_reason
        failed = self.coordinator.get_failed_fetches(self._device.mac)
        if failed:
            attributes[ATTR_FAILED_FETCHES] = failed
        return attributes

    def _capability_value(self) -> Any:
        return self._device.get_capability_value(self._key)
