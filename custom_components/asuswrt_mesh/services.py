"""Services for controlling the ASUS network."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

import voluptuous as vol
from homeassistant.const import ATTR_DEVICE_ID, STATE_OFF, STATE_ON
from homeassistant.core import HomeAssistant, ServiceCall, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr

from .asuswrt_client import AsusWrtError
from .const import (
    ATTR_MAC,
    DOMAIN,
    SERVICE_REBOOT_NETWORK,
    SERVICE_SET_LEDS,
    SERVICE_WAKE_ON_LAN,
)
from .models import normalize_mac

if TYPE_CHECKING:
    from .coordinator import AsusWrtCoordinator
    from .device import AccessPointDevice

_LOGGER = logging.getLogger(__name__)

ATTR_STATE = "state"

REBOOT_NETWORK_SCHEMA = vol.Schema({vol.Optional(ATTR_DEVICE_ID): cv.string})

SET_LEDS_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_DEVICE_ID): cv.string,
        vol.Required(ATTR_STATE): vol.In([STATE_ON, STATE_OFF]),
    }
)

WAKE_ON_LAN_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_MAC): vol.All(
            cv.string, vol.Match(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$")
        ),
        vol.Optional(ATTR_DEVICE_ID): cv.string,
    }
)


def _coordinators(hass: HomeAssistant) -> List[AsusWrtCoordinator]:
    coordinators = list(hass.data.get(DOMAIN, {}).values())
    if not coordinators:
        raise HomeAssistantError("No AsusWRT Mesh network is configured")
    return coordinators


def find_access_point(
    hass: HomeAssistant, device_id: str
) -> Optional[Tuple[AsusWrtCoordinator, AccessPointDevice]]:
    """Return the coordinator and access point behind a device registry id."""
    device_entry = dr.async_get(hass).async_get(device_id)
    if device_entry is None:
        return None

    for domain, identifier in device_entry.identifiers:
        if domain != DOMAIN:
            continue
        for coordinator in hass.data.get(DOMAIN, {}).values():
            access_point = coordinator.get_device(identifier)
            if access_point is not None:
                return coordinator, access_point
    return None


def _resolve_device(hass: HomeAssistant, device_id: str):
    found = find_access_point(hass, device_id)
    if found is None:
        raise HomeAssistantError(f"Device {device_id} is not an AsusWRT Mesh access point")
    coordinator, access_point = found
    return coordinator, access_point.mac


async def _wake_on_lan_coordinators(
    hass: HomeAssistant, mac: str
) -> List[AsusWrtCoordinator]:
    """Return the networks that have the client registered, or every network if none do."""
    coordinators = _coordinators(hass)
    registered = [
        coordinator
        for coordinator in coordinators
        if any(client.mac == mac for client in await coordinator.async_wake_on_lan_clients(mac))
    ]
    if not registered:
        _LOGGER.debug("%s is not registered for wake-on-LAN, sending on every network", mac)
    return registered or coordinators


@callback
def async_setup_services(hass: HomeAssistant) -> None:
    """Register the integration services once."""
    if hass.services.has_service(DOMAIN, SERVICE_REBOOT_NETWORK):
        return

    async def async_reboot_network(call: ServiceCall) -> None:
        if ATTR_DEVICE_ID in call.data:
            coordinators = [_resolve_device(hass, call.data[ATTR_DEVICE_ID])[0]]
        else:
            coordinators = _coordinators(hass)

        for coordinator in coordinators:
            try:
                await coordinator.client.reboot_network()
            except AsusWrtError as ex:
                raise HomeAssistantError(f"Failed to reboot network: {ex}") from ex

    async def async_set_leds(call: ServiceCall) -> None:
        coordinator, mac = _resolve_device(hass, call.data[ATTR_DEVICE_ID])
        enabled = call.data[ATTR_STATE] == STATE_ON
        try:
            await coordinator.client.set_leds_enabled(mac, enabled)
        except AsusWrtError as ex:
            raise HomeAssistantError(f"Failed to set LEDs of {mac}: {ex}") from ex
        _LOGGER.debug("Turned LEDs %s on %s", call.data[ATTR_STATE], mac)

    async def async_wake_on_lan(call: ServiceCall) -> None:
        mac = normalize_mac(call.data[ATTR_MAC])
        try:
            if ATTR_DEVICE_ID in call.data:
                coordinators = [_resolve_device(hass, call.data[ATTR_DEVICE_ID])[0]]
            else:
                coordinators = await _wake_on_lan_coordinators(hass, mac)
            for coordinator in coordinators:
                await coordinator.client.wake_on_lan(mac)
        except AsusWrtError as ex:
            raise HomeAssistantError(f"Failed to wake {mac}: {ex}") from ex

    hass.services.async_register(
        DOMAIN, SERVICE_REBOOT_NETWORK, async_reboot_network, schema=REBOOT_NETWORK_SCHEMA
    )
    hass.services.async_register(DOMAIN, SERVICE_SET_LEDS, async_set_leds, schema=SET_LEDS_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_WAKE_ON_LAN, async_wake_on_lan, schema=WAKE_ON_LAN_SCHEMA
    )


@callback
def async_unload_services(hass: HomeAssistant) -> None:
    """Remove the integration services."""
    for service in (SERVICE_REBOOT_NETWORK, SERVICE_SET_LEDS, SERVICE_WAKE_ON_LAN):
        hass.services.async_remove(DOMAIN, service)
