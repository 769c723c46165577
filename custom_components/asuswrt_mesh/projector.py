"""Project fetched router metrics onto access point device state.

Every function here writes capability values on an :class:`AccessPointDevice`
and queues edge-triggered notifications. Nothing is caught: the coordinator
isolates failures per device and per metric group.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Tuple

from .const import (
    ATTR_VERSION,
    CAP_ALARM_WAN_DISCONNECTED,
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
    EVENT_24G_DEVICE_CONNECTED,
    EVENT_24G_DEVICE_DISCONNECTED,
    EVENT_5G_DEVICE_CONNECTED,
    EVENT_5G_DEVICE_DISCONNECTED,
    EVENT_DEVICE_CONNECTED,
    EVENT_DEVICE_DISCONNECTED,
    EVENT_EXTERNAL_IP_CHANGED,
    EVENT_NEW_FIRMWARE_AVAILABLE,
    EVENT_WAN_TYPE_CHANGED,
    EVENT_WIRED_DEVICE_CONNECTED,
    EVENT_WIRED_DEVICE_DISCONNECTED,
    SECONDS_PER_DAY,
    WAN_STATUS_CONNECTED,
)
from .diffing import ClientDiff, client_tokens, diff_clients, union_snapshots
from .models import ConnectedClient, Load, TrafficData, WanStatus
from .notifications import NotificationQueue

if TYPE_CHECKING:
    from .device import AccessPointDevice

_LOGGER = logging.getLogger(__name__)


@dataclass
class DeviceState:
    """Per access point state carried from one tick to the next."""

    wired_clients: List[ConnectedClient] = field(default_factory=list)
    wireless_24g_clients: List[ConnectedClient] = field(default_factory=list)
    wireless_5g_clients: List[ConnectedClient] = field(default_factory=list)
    firmware_version: str = ""
    new_firmware_version: str = ""
    client_updates: int = 0

    def all_clients(self) -> List[ConnectedClient]:
        return union_snapshots(
            self.wired_clients, self.wireless_24g_clients, self.wireless_5g_clients
        )


@dataclass(frozen=True)
class CapabilityWriter:
    """Map a capability to the value extracted from fetched data.

    With ``change_event`` set, a notification is queued when the new value
    differs from the value already stored on the device.
    """

    capability: str
    extractor: Callable[[Any], Any]
    change_event: Optional[str] = None


LOAD_WRITERS: Tuple[CapabilityWriter, ...] = (
    CapabilityWriter(CAP_CPU_USAGE, lambda load: load.cpu_usage),
    CapabilityWriter(CAP_MEMORY_USAGE, lambda load: load.memory_usage),
)

UPTIME_WRITERS: Tuple[CapabilityWriter, ...] = (
    CapabilityWriter(CAP_UPTIME_DAYS, lambda seconds: seconds / SECONDS_PER_DAY),
)

FIRMWARE_WRITERS: Tuple[CapabilityWriter, ...] = (
    CapabilityWriter(CAP_FIRMWARE_VERSION, lambda versions: versions[0]),
    CapabilityWriter(CAP_NEW_FIRMWARE_VERSION, lambda versions: versions[1] or None),
)

WAN_WRITERS: Tuple[CapabilityWriter, ...] = (
    CapabilityWriter(CAP_EXTERNAL_IP, lambda wan: wan.ip_address, EVENT_EXTERNAL_IP_CHANGED),
    # Status 0 is reported before the uplink state is known
    CapabilityWriter(
        CAP_ALARM_WAN_DISCONNECTED,
        lambda wan: bool(wan.status) and wan.status != WAN_STATUS_CONNECTED,
    ),
    CapabilityWriter(CAP_WAN_TYPE, lambda wan: wan.wan_type, EVENT_WAN_TYPE_CHANGED),
)

TRAFFIC_WRITERS: Tuple[CapabilityWriter, ...] = (
    CapabilityWriter(CAP_TRAFFIC_TOTAL_RECEIVED, lambda samples: samples[1].received),
    CapabilityWriter(CAP_TRAFFIC_TOTAL_SENT, lambda samples: samples[1].sent),
    CapabilityWriter(
        CAP_REALTIME_DOWNLOAD, lambda samples: samples[1].received - samples[0].received
    ),
    CapabilityWriter(CAP_REALTIME_UPLOAD, lambda samples: samples[1].sent - samples[0].sent),
)


def apply_writers(
    device: AccessPointDevice,
    writers: Sequence[CapabilityWriter],
    source: Any,
    queue: NotificationQueue,
) -> None:
    """Write every capability of a metric group the device advertises."""
    for writer in writers:
        if not device.has_capability(writer.capability):
            continue
        value = writer.extractor(source)
        if writer.change_event:
            previous = device.get_capability_value(writer.capability)
            # Nothing stored yet means no transition to report
            if previous is not None and previous != value:
                queue.append(writer.change_event, {writer.capability: value}, device.mac)
        device.set_capability_value(writer.capability, value)


def _queue_transitions(
    device: AccessPointDevice,
    diff: ClientDiff,
    disconnected_event: str,
    connected_event: str,
    queue: NotificationQueue,
    suppress_arrivals: bool,
) -> None:
    for client in diff.departed:
        queue.append(disconnected_event, client_tokens(client), device.mac)
    if suppress_arrivals:
        return
    for client in diff.arrived:
        queue.append(connected_event, client_tokens(client), device.mac)


def project_clients(
    device: AccessPointDevice,
    wired: Sequence[ConnectedClient],
    wireless_24g: Sequence[ConnectedClient],
    wireless_5g: Sequence[ConnectedClient],
    queue: NotificationQueue,
    suppress_initial_ticks: int = 0,
) -> None:
    """Diff new client snapshots against the stored ones and replace them.

    Arrivals are not announced for the first ``suppress_initial_ticks``
    client updates of a device, so that startup does not report every client
    already on the network.
    """
    state = device.state
    suppress_arrivals = state.client_updates < suppress_initial_ticks

    old_union = state.all_clients()
    new_union = union_snapshots(wired, wireless_24g, wireless_5g)

    scopes = (
        (
            diff_clients(old_union, new_union),
            EVENT_DEVICE_DISCONNECTED,
            EVENT_DEVICE_CONNECTED,
        ),
        (
            diff_clients(state.wired_clients, wired),
            EVENT_WIRED_DEVICE_DISCONNECTED,
            EVENT_WIRED_DEVICE_CONNECTED,
        ),
        (
            diff_clients(state.wireless_24g_clients, wireless_24g),
            EVENT_24G_DEVICE_DISCONNECTED,
            EVENT_24G_DEVICE_CONNECTED,
        ),
        (
            diff_clients(state.wireless_5g_clients, wireless_5g),
            EVENT_5G_DEVICE_DISCONNECTED,
            EVENT_5G_DEVICE_CONNECTED,
        ),
    )
    for diff, disconnected_event, connected_event in scopes:
        _queue_transitions(
            device, diff, disconnected_event, connected_event, queue, suppress_arrivals
        )

    state.wired_clients = list(wired)
    state.wireless_24g_clients = list(wireless_24g)
    state.wireless_5g_clients = list(wireless_5g)
    state.client_updates += 1

    if suppress_arrivals:
        _LOGGER.debug(
            "Suppressed arrival notifications for %s (client update %d)",
            device.name,
            state.client_updates,
        )

    if device.has_capability(CAP_ONLINE_DEVICES):
        device.set_capability_value(CAP_ONLINE_DEVICES, len(new_union))


def project_firmware(
    device: AccessPointDevice,
    current_version: str,
    new_version: str,
    queue: NotificationQueue,
) -> None:
    """Announce a newly available firmware version once."""
    state = device.state
    if state.firmware_version and new_version and state.new_firmware_version != new_version:
        queue.append(EVENT_NEW_FIRMWARE_AVAILABLE, {ATTR_VERSION: new_version}, device.mac)

    state.firmware_version = current_version
    state.new_firmware_version = new_version
    apply_writers(device, FIRMWARE_WRITERS, (current_version, new_version), queue)


def project_load(device: AccessPointDevice, load: Load, queue: NotificationQueue) -> None:
    apply_writers(device, LOAD_WRITERS, load, queue)


def project_uptime(
    device: AccessPointDevice, uptime_seconds: float, queue: NotificationQueue
) -> None:
    apply_writers(device, UPTIME_WRITERS, uptime_seconds, queue)


def project_wan_status(
    device: AccessPointDevice, wan_status: WanStatus, queue: NotificationQueue
) -> None:
    apply_writers(device, WAN_WRITERS, wan_status, queue)


def project_traffic(
    device: AccessPointDevice,
    first: TrafficData,
    second: TrafficData,
    queue: NotificationQueue,
) -> None:
    """Write totals from the second sample and the delta between samples.

    A counter reset yields a negative delta, which is written as is.
    """
    apply_writers(device, TRAFFIC_WRITERS, (first, second), queue)
