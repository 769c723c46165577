"""Structured notifications and their dispatch onto the Home Assistant bus."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from homeassistant.const import ATTR_DEVICE_ID
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import device_registry as dr

from .const import (
    ATTR_DEVICE_MAC,
    ATTR_FROM_ACCESS_POINT,
    ATTR_MAC,
    ATTR_TO_ACCESS_POINT,
    ATTR_TYPE,
    DOMAIN,
    EVENT_ASUSWRT_MESH,
    EVENT_DEVICE_CONNECTED,
    EVENT_DEVICE_DISCONNECTED,
    EVENT_DEVICE_ROAMED,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """An edge-triggered event raised while processing a tick.

    ``device_mac`` is the access point the event belongs to, or ``None`` for
    network-wide events.
    """

    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)
    device_mac: Optional[str] = None


class NotificationQueue:
    """Collect notifications during a tick until they are dispatched."""

    def __init__(self) -> None:
        """Initialize an empty queue."""
        self._items: List[Notification] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def append(
        self, kind: str, payload: Dict[str, Any], device_mac: Optional[str] = None
    ) -> None:
        """Queue a notification."""
        self._items.append(Notification(kind, dict(payload), device_mac))

    def extend(self, other: NotificationQueue) -> None:
        """Queue every notification of another queue."""
        self._items.extend(other)

    def drain(self) -> List[Notification]:
        """Return all queued notifications and empty the queue."""
        items, self._items = self._items, []
        return items

    def collapse_roaming(self) -> None:
        """Replace disconnect/connect pairs across access points with one roam.

        A client that left access point A and joined access point B in the
        same tick becomes a single network-wide ``device_roamed`` notification.
        Per-band notifications are kept.
        """
        departures: Dict[str, Notification] = {}
        arrivals: Dict[str, Notification] = {}
        for item in self._items:
            mac = item.payload.get(ATTR_MAC)
            if item.kind == EVENT_DEVICE_DISCONNECTED:
                departures.setdefault(mac, item)
            elif item.kind == EVENT_DEVICE_CONNECTED:
                arrivals.setdefault(mac, item)

        roamed = {
            mac
            for mac in departures.keys() & arrivals.keys()
            if departures[mac].device_mac != arrivals[mac].device_mac
        }
        if not roamed:
            return

        collapsed: List[Notification] = []
        for item in self._items:
            mac = item.payload.get(ATTR_MAC)
            if mac not in roamed:
                collapsed.append(item)
            elif item is arrivals[mac]:
                payload = dict(item.payload)
                payload[ATTR_FROM_ACCESS_POINT] = departures[mac].device_mac
                payload[ATTR_TO_ACCESS_POINT] = item.device_mac
                collapsed.append(Notification(EVENT_DEVICE_ROAMED, payload))
            elif item is not departures[mac]:
                collapsed.append(item)

        _LOGGER.debug("Collapsed %d roaming clients into single events", len(roamed))
        self._items = collapsed


class NotificationDispatcher:
    """Fire queued notifications as Home Assistant bus events."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the dispatcher."""
        self.hass = hass

    @callback
    def async_dispatch(self, queue: NotificationQueue) -> int:
        """Drain the queue onto the bus and return the number of fired events.

        A notification that cannot be fired is logged and skipped so the rest
        of the queue still goes out.
        """
        fired = 0
        for notification in queue.drain():
            try:
                self.hass.bus.async_fire(EVENT_ASUSWRT_MESH, self._event_data(notification))
            except Exception as ex:  # pylint: disable=broad-except
                _LOGGER.error("Failed to fire %s notification: %s", notification.kind, ex)
                continue
            fired += 1
        return fired

    def _event_data(self, notification: Notification) -> Dict[str, Any]:
        """Build the event data for a notification."""
        data: Dict[str, Any] = {ATTR_TYPE: notification.kind, **notification.payload}
        if notification.device_mac:
            data[ATTR_DEVICE_MAC] = notification.device_mac
            device = dr.async_get(self.hass).async_get_device(
                identifiers={(DOMAIN, notification.device_mac)}
            )
            if device:
                data[ATTR_DEVICE_ID] = device.id
        return data
