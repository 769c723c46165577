"""Diagnostics support for AsusWRT Mesh integration."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CAP_EXTERNAL_IP, CAP_UPTIME_DAYS, DOMAIN, SECONDS_PER_DAY
from .coordinator import AsusWrtCoordinator

REDACT_KEYS = ["password", "username", "host", "mac", "ip", CAP_EXTERNAL_IP]


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> Dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: AsusWrtCoordinator = hass.data[DOMAIN][entry.entry_id]

    diagnostics_data = {
        "config_entry": {
            "title": entry.title,
            "version": entry.version,
            "domain": entry.domain,
            "data": dict(entry.data),
            "options": dict(entry.options),
        },
        "coordinator_data": _get_coordinator_diagnostics(coordinator),
        "devices": _get_devices_diagnostics(coordinator),
    }

    return async_redact_data(diagnostics_data, REDACT_KEYS)


def _get_coordinator_diagnostics(coordinator: AsusWrtCoordinator) -> Dict[str, Any]:
    """Get coordinator-level diagnostics."""
    if not coordinator.data:
        return {"status": "No data available"}

    return {
        "last_update": coordinator.data.get("last_update", "Unknown"),
        "update_success": coordinator.last_update_success,
        "network_clients": coordinator.data.get("network_clients", 0),
        "failed_fetches": coordinator.data.get("failed_fetches", {}),
        "update_interval": str(coordinator.update_interval),
        "suppress_initial_ticks": coordinator.suppress_initial_ticks,
        "collapse_roaming": coordinator.collapse_roaming,
    }


def _get_devices_diagnostics(coordinator: AsusWrtCoordinator) -> Dict[str, Any]:
    """Get per access point diagnostics keyed by device name."""
    devices_diagnostics = {}
    for device in coordinator.devices.values():
        device_data = device.as_dict()
        device_data["uptime_formatted"] = _format_uptime(
            device.get_capability_value(CAP_UPTIME_DAYS)
        )
        devices_diagnostics[device.name] = device_data
    return devices_diagnostics


def _format_uptime(uptime_days: float | None) -> str:
    """Format uptime days into human-readable string."""
    if not uptime_days:
        return "Unknown"

    uptime_delta = timedelta(seconds=int(uptime_days * SECONDS_PER_DAY))
    days = uptime_delta.days
    hours, remainder = divmod(uptime_delta.seconds, 3600)
    minutes, _ = divmod(remainder, 60)

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    elif hours > 0:
        return f"{hours}h {minutes}m"
    else:
        return f"{minutes}m"
