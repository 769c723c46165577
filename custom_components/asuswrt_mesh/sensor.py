"""
AsusWRT Mesh sensor implementation.

Provides load, uptime, firmware and connected client sensors for every
registered access point, plus WAN and traffic sensors for the main router.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE, EntityCategory, UnitOfInformation, UnitOfTime
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import (
    CAP_CPU_USAGE,
    CAP_EXTERNAL_IP,
    CAP_FIRMWARE_VERSION,
    CAP_MEMORY_USAGE,
    CAP_NEW_FIRMWARE_VERSION,
    CAP_ONLINE_DEVICES,
    CAP_REALTIME_DOWNLOAD,
    CAP_REALTIME_UPLOAD,
    CAP_TRAFFIC_TOTAL_RECEIVED,
    CAP_TRAFFIC_TOTAL_SENT,
    CAP_UPTIME_DAYS,
    CAP_WAN_TYPE,
    DOMAIN,
)
from .coordinator import AsusWrtCoordinator
from .device import AccessPointDevice
from .entity import AsusWrtEntity

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AsusWrtSensorDescription(SensorEntityDescription):
    """Sensor bound to a device capability."""

    precision: Optional[int] = None


SENSOR_DESCRIPTIONS: tuple[AsusWrtSensorDescription, ...] = (
    AsusWrtSensorDescription(
        key=CAP_ONLINE_DEVICES,
        name="Online Devices",
        state_class=SensorStateClass.MEASUREMENT,
    ),
    AsusWrtSensorDescription(
        key=CAP_CPU_USAGE,
        name="CPU Usage",
        native_unit_of_measurement=PERCENTAGE,
        state_class=SensorStateClass.MEASUREMENT,
        precision=1,
    ),
    AsusWrtSensorDescription(
        key=CAP_MEMORY_USAGE,
        name="Memory Usage",
        native_unit_of_measurement=PERCENTAGE,
        state_class=SensorStateClass.MEASUREMENT,
        precision=1,
    ),
    AsusWrtSensorDescription(
        key=CAP_UPTIME_DAYS,
        name="Uptime",
        device_class=SensorDeviceClass.DURATION,
        native_unit_of_measurement=UnitOfTime.DAYS,
        entity_category=EntityCategory.DIAGNOSTIC,
        precision=2,
    ),
    AsusWrtSensorDescription(
        key=CAP_FIRMWARE_VERSION,
        name="Firmware Version",
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    AsusWrtSensorDescription(
        key=CAP_NEW_FIRMWARE_VERSION,
        name="Available Firmware Version",
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    AsusWrtSensorDescription(
        key=CAP_EXTERNAL_IP,
        name="External IP",
    ),
    AsusWrtSensorDescription(
        key=CAP_WAN_TYPE,
        name="WAN Type",
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    AsusWrtSensorDescription(
        key=CAP_TRAFFIC_TOTAL_RECEIVED,
        name="Total Received",
        device_class=SensorDeviceClass.DATA_SIZE,
        native_unit_of_measurement=UnitOfInformation.MEGABYTES,
        state_class=SensorStateClass.TOTAL_INCREASING,
        precision=2,
    ),
    AsusWrtSensorDescription(
        key=CAP_TRAFFIC_TOTAL_SENT,
        name="Total Sent",
        device_class=SensorDeviceClass.DATA_SIZE,
        native_unit_of_measurement=UnitOfInformation.MEGABYTES,
        state_class=SensorStateClass.TOTAL_INCREASING,
        precision=2,
    ),
    # Megabytes moved during the two second sampling window
    AsusWrtSensorDescription(
        key=CAP_REALTIME_DOWNLOAD,
        name="Realtime Download",
        device_class=SensorDeviceClass.DATA_SIZE,
        native_unit_of_measurement=UnitOfInformation.MEGABYTES,
        state_class=SensorStateClass.MEASUREMENT,
        precision=3,
    ),
    AsusWrtSensorDescription(
        key=CAP_REALTIME_UPLOAD,
        name="Realtime Upload",
        device_class=SensorDeviceClass.DATA_SIZE,
        native_unit_of_measurement=UnitOfInformation.MEGABYTES,
        state_class=SensorStateClass.MEASUREMENT,
        precision=3,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up AsusWRT Mesh sensor entities."""
    coordinator: AsusWrtCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    entities = [
        AsusWrtSensor(coordinator, device, description)
        for device in coordinator.devices.values()
        for description in SENSOR_DESCRIPTIONS
        if device.has_capability(description.key)
    ]
    _LOGGER.debug("Created %d sensors for %d devices", len(entities), len(coordinator.devices))
    async_add_entities(entities)


class AsusWrtSensor(AsusWrtEntity, SensorEntity):
    """Sensor reporting one capability value of an access point."""

    entity_description: AsusWrtSensorDescription

    def __init__(
        self,
        coordinator: AsusWrtCoordinator,
        device: AccessPointDevice,
        description: AsusWrtSensorDescription,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, device, description.key, description.name)
        self.entity_description = description

    @property
    def native_value(self) -> Any:
        """Return the capability value."""
        value = self._capability_value()
        if value is not None and self.entity_description.precision is not None:
            return round(value, self.entity_description.precision)
        return value
