"""Device conditions for AsusWRT Mesh access points."""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.const import CONF_CONDITION, CONF_DEVICE_ID, CONF_DOMAIN, CONF_TYPE
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import condition
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.config_validation import DEVICE_CONDITION_BASE_SCHEMA
from homeassistant.helpers.typing import ConfigType, TemplateVarsType

from .const import ATTR_MAC, DOMAIN
from .services import find_access_point

CONDITION_CLIENT_CONNECTED = "client_connected"
CONDITION_CLIENT_CONNECTED_TO_NETWORK = "client_connected_to_network"
CONDITION_TYPES = (CONDITION_CLIENT_CONNECTED, CONDITION_CLIENT_CONNECTED_TO_NETWORK)

CONDITION_SCHEMA = DEVICE_CONDITION_BASE_SCHEMA.extend(
    {
        vol.Required(CONF_TYPE): vol.In(CONDITION_TYPES),
        vol.Required(ATTR_MAC): cv.string,
    }
)


async def async_get_conditions(hass: HomeAssistant, device_id: str) -> list[dict[str, Any]]:
    """List the conditions of an access point."""
    if find_access_point(hass, device_id) is None:
        return []
    return [
        {
            CONF_CONDITION: "device",
            CONF_DEVICE_ID: device_id,
            CONF_DOMAIN: DOMAIN,
            CONF_TYPE: condition_type,
        }
        for condition_type in CONDITION_TYPES
    ]


async def async_get_condition_capabilities(
    hass: HomeAssistant, config: ConfigType
) -> dict[str, vol.Schema]:
    """Ask for the client MAC address, offering the clients currently online."""
    found = find_access_point(hass, config.get(CONF_DEVICE_ID, ""))
    if found is None:
        return {"extra_fields": vol.Schema({vol.Required(ATTR_MAC): str})}

    coordinator, _ = found
    clients = {
        client.mac: f"{client.display_name} ({client.ip or client.mac})"
        for client in coordinator.autocomplete_clients("")
    }
    return {"extra_fields": vol.Schema({vol.Required(ATTR_MAC): vol.In(clients)})}


@callback
def async_condition_from_config(
    hass: HomeAssistant, config: ConfigType
) -> condition.ConditionCheckerType:
    """Check whether a client is connected to the access point or anywhere on its network."""
    device_id = config[CONF_DEVICE_ID]
    client_mac = config[ATTR_MAC]
    network_wide = config[CONF_TYPE] == CONDITION_CLIENT_CONNECTED_TO_NETWORK

    @callback
    def test_client_connected(hass: HomeAssistant, variables: TemplateVarsType = None) -> bool:
        found = find_access_point(hass, device_id)
        if found is None:
            return False
        coordinator, access_point = found
        if network_wide:
            return coordinator.is_client_connected(client_mac)
        return access_point.is_client_connected(client_mac)

    return test_client_connected
