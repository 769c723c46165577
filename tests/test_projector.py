"""Tests for projecting fetched metrics onto device state."""

import pytest

from custom_components.asuswrt_mesh.const import (
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
    EVENT_5G_DEVICE_CONNECTED,
    EVENT_5G_DEVICE_DISCONNECTED,
    EVENT_DEVICE_CONNECTED,
    EVENT_DEVICE_DISCONNECTED,
    EVENT_EXTERNAL_IP_CHANGED,
    EVENT_NEW_FIRMWARE_AVAILABLE,
    EVENT_WAN_TYPE_CHANGED,
    EVENT_WIRED_DEVICE_CONNECTED,
    EVENT_WIRED_DEVICE_DISCONNECTED,
)
from custom_components.asuswrt_mesh.device import AccessPointDevice
from custom_components.asuswrt_mesh.models import (
    ConnectedClient,
    Load,
    OperationMode,
    TrafficData,
    WanStatus,
)
from custom_components.asuswrt_mesh.notifications import NotificationQueue
from custom_components.asuswrt_mesh.projector import (
    project_clients,
    project_firmware,
    project_load,
    project_traffic,
    project_uptime,
    project_wan_status,
)

MAC = "AA:AA:AA:AA:AA:01"

LAPTOP = ConnectedClient(mac="11:11:11:11:11:11", name="laptop")
PHONE = ConnectedClient(mac="22:22:22:22:22:22", name="phone")
TV = ConnectedClient(mac="33:33:33:33:33:33", name="tv")


@pytest.fixture
def router():
    return AccessPointDevice(MAC, "Main", OperationMode.ROUTER)


@pytest.fixture
def access_point():
    return AccessPointDevice("AA:AA:AA:AA:AA:02", "Upstairs", OperationMode.ACCESS_POINT)


def kinds(queue):
    return [item.kind for item in queue]


class TestProjectClients:
    """Test client snapshot projection."""

    def test_first_update_stores_snapshots_without_arrivals(self, router):
        queue = NotificationQueue()

        project_clients(router, [LAPTOP], [PHONE], [], queue, suppress_initial_ticks=1)

        assert len(queue) == 0
        assert router.state.wired_clients == [LAPTOP]
        assert router.state.wireless_24g_clients == [PHONE]
        assert router.get_capability_value(CAP_ONLINE_DEVICES) == 2

    def test_arrivals_after_suppression(self, router):
        project_clients(router, [LAPTOP], [], [], NotificationQueue(), suppress_initial_ticks=1)
        queue = NotificationQueue()

        project_clients(router, [LAPTOP], [PHONE], [], queue, suppress_initial_ticks=1)

        assert kinds(queue) == [EVENT_DEVICE_CONNECTED, EVENT_24G_DEVICE_CONNECTED]
        assert all(item.device_mac == MAC for item in queue)
        assert queue.drain()[0].payload["mac"] == PHONE.mac

    def test_no_suppression_announces_first_update(self, router):
        queue = NotificationQueue()

        project_clients(router, [LAPTOP], [], [], queue)

        assert kinds(queue) == [EVENT_DEVICE_CONNECTED, EVENT_WIRED_DEVICE_CONNECTED]

    def test_departures_are_never_suppressed(self, router):
        router.state.wired_clients = [LAPTOP]
        queue = NotificationQueue()

        project_clients(router, [], [], [], queue, suppress_initial_ticks=5)

        assert kinds(queue) == [EVENT_DEVICE_DISCONNECTED, EVENT_WIRED_DEVICE_DISCONNECTED]

    def test_band_change_fires_band_events_only(self, router):
        project_clients(router, [], [], [TV], NotificationQueue())
        queue = NotificationQueue()

        project_clients(router, [], [TV], [], queue)

        assert kinds(queue) == [EVENT_24G_DEVICE_CONNECTED, EVENT_5G_DEVICE_DISCONNECTED]

    def test_departures_precede_arrivals_per_scope(self, router):
        project_clients(router, [LAPTOP], [], [], NotificationQueue())
        queue = NotificationQueue()

        project_clients(router, [PHONE], [], [], queue)

        assert kinds(queue) == [
            EVENT_DEVICE_DISCONNECTED,
            EVENT_DEVICE_CONNECTED,
            EVENT_WIRED_DEVICE_DISCONNECTED,
            EVENT_WIRED_DEVICE_CONNECTED,
        ]

    def test_online_devices_counts_all_scopes(self, access_point):
        project_clients(access_point, [LAPTOP], [PHONE], [TV], NotificationQueue())

        assert access_point.get_capability_value(CAP_ONLINE_DEVICES) == 3


class TestProjectFirmware:
    """Test firmware projection."""

    def test_no_event_without_known_current_version(self, router):
        queue = NotificationQueue()

        project_firmware(router, "3.0.0.4.388_1", "3.0.0.4.388_2", queue)

        assert len(queue) == 0
        assert router.get_capability_value(CAP_FIRMWARE_VERSION) == "3.0.0.4.388_1"
        assert router.get_capability_value(CAP_NEW_FIRMWARE_VERSION) == "3.0.0.4.388_2"

    def test_event_once_per_new_version(self, router):
        project_firmware(router, "1.0", "", NotificationQueue())
        queue = NotificationQueue()

        project_firmware(router, "1.0", "1.1", queue)
        project_firmware(router, "1.0", "1.1", queue)
        project_firmware(router, "1.0", "1.2", queue)

        assert kinds(queue) == [EVENT_NEW_FIRMWARE_AVAILABLE, EVENT_NEW_FIRMWARE_AVAILABLE]
        assert [item.payload["version"] for item in queue] == ["1.1", "1.2"]

    def test_no_update_available(self, router):
        project_firmware(router, "1.0", "", NotificationQueue())
        queue = NotificationQueue()

        project_firmware(router, "1.0", "", queue)

        assert len(queue) == 0
        assert router.get_capability_value(CAP_NEW_FIRMWARE_VERSION) is None


class TestProjectMetrics:
    """Test load, uptime, WAN and traffic projection."""

    def test_load(self, access_point):
        project_load(access_point, Load(cpu_usage=23.5, memory_usage=61.0), NotificationQueue())

        assert access_point.get_capability_value(CAP_CPU_USAGE) == 23.5
        assert access_point.get_capability_value(CAP_MEMORY_USAGE) == 61.0

    def test_uptime_in_days(self, access_point):
        project_uptime(access_point, 129600, NotificationQueue())

        assert access_point.get_capability_value(CAP_UPTIME_DAYS) == 1.5

    def test_wan_skipped_without_capability(self, access_point):
        queue = NotificationQueue()

        project_wan_status(access_point, WanStatus("1.2.3.4", 2, "Disconnected", "dhcp"), queue)

        assert len(queue) == 0
        assert access_point.get_capability_value(CAP_EXTERNAL_IP) is None

    def test_external_ip_changes(self, router):
        queue = NotificationQueue()
        for ip in ["A", "A", "B", "B", "A"]:
            project_wan_status(router, WanStatus(ip, 1, "Connected", "dhcp"), queue)

        assert kinds(queue) == [EVENT_EXTERNAL_IP_CHANGED, EVENT_EXTERNAL_IP_CHANGED]
        assert [item.payload[CAP_EXTERNAL_IP] for item in queue] == ["B", "A"]
        assert router.get_capability_value(CAP_EXTERNAL_IP) == "A"

    def test_wan_type_change(self, router):
        project_wan_status(router, WanStatus("A", 1, "Connected", "dhcp"), NotificationQueue())
        queue = NotificationQueue()

        project_wan_status(router, WanStatus("A", 1, "Connected", "pppoe"), queue)

        assert kinds(queue) == [EVENT_WAN_TYPE_CHANGED]
        assert router.get_capability_value(CAP_WAN_TYPE) == "pppoe"

    @pytest.mark.parametrize(
        ("status", "alarm"), [(1, False), (2, True), (0, False), (None, False)]
    )
    def test_wan_alarm(self, router, status, alarm):
        project_wan_status(router, WanStatus("A", status, "", "dhcp"), NotificationQueue())

        assert router.get_capability_value(CAP_ALARM_WAN_DISCONNECTED) is alarm

    def test_traffic(self, router):
        project_traffic(
            router, TrafficData(1000, 500), TrafficData(1250, 600), NotificationQueue()
        )

        assert router.get_capability_value(CAP_TRAFFIC_TOTAL_RECEIVED) == 1250
        assert router.get_capability_value(CAP_TRAFFIC_TOTAL_SENT) == 600
        assert router.get_capability_value(CAP_REALTIME_DOWNLOAD) == 250
        assert router.get_capability_value(CAP_REALTIME_UPLOAD) == 100

    def test_traffic_counter_reset_passes_negative_delta(self, router):
        project_traffic(router, TrafficData(1000, 500), TrafficData(10, 5), NotificationQueue())

        assert router.get_capability_value(CAP_REALTIME_DOWNLOAD) == -990
        assert router.get_capability_value(CAP_REALTIME_UPLOAD) == -495
