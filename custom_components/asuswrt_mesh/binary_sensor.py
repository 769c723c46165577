"""Binary sensors for AsusWRT Mesh: WAN alarm and partial failure warning."""

from __future__ import annotations

import logging
from typing import Any, Dict

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import ATTR_WARNING, CAP_ALARM_WAN_DISCONNECTED, DOMAIN
from .coordinator import AsusWrtCoordinator
from .device import AccessPointDevice
from .entity import AsusWrtEntity

_LOGGER = logging.getLogger(__name__)

KEY_PROBLEM = "problem"


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up AsusWRT Mesh binary sensors."""
    coordinator: AsusWrtCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    entities: list[BinarySensorEntity] = []
    for device in coordinator.devices.values():
        entities.append(AsusWrtProblemBinarySensor(coordinator, device))
        if device.has_capability(CAP_ALARM_WAN_DISCONNECTED):
            entities.append(AsusWrtWanDisconnectedBinarySensor(coordinator, device))

    async_add_entities(entities)


class AsusWrtWanDisconnectedBinarySensor(AsusWrtEntity, BinarySensorEntity):
    """On while the router reports its WAN link down."""

    def __init__(self, coordinator: AsusWrtCoordinator, device: AccessPointDevice) -> None:
        """Initialize the binary sensor."""
        super().__init__(coordinator, device, CAP_ALARM_WAN_DISCONNECTED, "WAN Disconnected")
        self._attr_device_class = BinarySensorDeviceClass.PROBLEM

    @property
    def is_on(self) -> bool | None:
        value = self._capability_value()
        return None if value is None else bool(value)


class AsusWrtProblemBinarySensor(AsusWrtEntity, BinarySensorEntity):
    """On while some metric groups of the device could not be fetched."""

    def __init__(self, coordinator: AsusWrtCoordinator, device: AccessPointDevice) -> None:
        """Initialize the binary sensor."""
        super().__init__(coordinator, device, KEY_PROBLEM, "Problem")
        self._attr_device_class = BinarySensorDeviceClass.PROBLEM
        self._attr_entity_category = EntityCategory.DIAGNOSTIC

    @property
    def is_on(self) -> bool:
        return self._device.warning is not None

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        attributes = super().extra_state_attributes
        if self._device.warning:
            attributes[ATTR_WARNING] = self._device.warning
        return attributes
