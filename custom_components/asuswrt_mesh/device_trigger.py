"""Device triggers for AsusWRT Mesh access points."""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.components.device_automation import DEVICE_TRIGGER_BASE_SCHEMA
from homeassistant.components.homeassistant.triggers import event as event_trigger
from homeassistant.const import CONF_DEVICE_ID, CONF_DOMAIN, CONF_PLATFORM, CONF_TYPE
from homeassistant.core import CALLBACK_TYPE, HomeAssistant
from homeassistant.helpers.trigger import TriggerActionType, TriggerInfo
from homeassistant.helpers.typing import ConfigType

from .const import (
    CAP_EXTERNAL_IP,
    CAP_WAN_TYPE,
    DEVICE_EVENT_TYPES,
    DOMAIN,
    EVENT_ASUSWRT_MESH,
    EVENT_EXTERNAL_IP_CHANGED,
    EVENT_WAN_TYPE_CHANGED,
)
from .services import find_access_point

TRIGGER_SCHEMA = DEVICE_TRIGGER_BASE_SCHEMA.extend(
    {vol.Required(CONF_TYPE): vol.In(DEVICE_EVENT_TYPES)}
)

# Triggers only offered when the device has the capability behind them
REQUIRED_CAPABILITY = {
    EVENT_EXTERNAL_IP_CHANGED: CAP_EXTERNAL_IP,
    EVENT_WAN_TYPE_CHANGED: CAP_WAN_TYPE,
}


async def async_get_triggers(hass: HomeAssistant, device_id: str) -> list[dict[str, Any]]:
    """List the triggers of an access point."""
    found = find_access_point(hass, device_id)
    if found is None:
        return []
    _, access_point = found

    return [
        {
            CONF_PLATFORM: "device",
            CONF_DOMAIN: DOMAIN,
            CONF_DEVICE_ID: device_id,
            CONF_TYPE: event_type,
        }
        for event_type in DEVICE_EVENT_TYPES
        if event_type not in REQUIRED_CAPABILITY
        or access_point.has_capability(REQUIRED_CAPABILITY[event_type])
    ]


async def async_attach_trigger(
    hass: HomeAssistant,
    config: ConfigType,
    action: TriggerActionType,
    trigger_info: TriggerInfo,
) -> CALLBACK_TYPE:
    """Listen for notifications of one type on one access point."""
    event_config = event_trigger.TRIGGER_SCHEMA(
        {
            event_trigger.CONF_PLATFORM: "event",
            event_trigger.CONF_EVENT_TYPE: EVENT_ASUSWRT_MESH,
            event_trigger.CONF_EVENT_DATA: {
                CONF_DEVICE_ID: config[CONF_DEVICE_ID],
                CONF_TYPE: config[CONF_TYPE],
            },
        }
    )
    return await event_trigger.async_attach_trigger(
        hass, event_config, action, trigger_info, platform_type="device"
    )
