"""Constants for the AsusWRT Mesh integration."""

import re

# Integration domain
DOMAIN = "asuswrt_mesh"
MANUFACTURER = "ASUS"

# Config entry keys
CONF_DEVICES = "devices"
CONF_DEVICE_MAC = "mac"
CONF_DEVICE_NAME = "name"
CONF_DEVICE_PRODUCT_ID = "product_id"
CONF_DEVICE_OPERATION_MODE = "operation_mode"

# Options
CONF_SCAN_INTERVAL = "scan_interval"
CONF_SUPPRESS_INITIAL_TICKS = "suppress_initial_ticks"
CONF_COLLAPSE_ROAMING = "collapse_roaming"

# Default values
DEFAULT_USERNAME = "admin"
DEFAULT_SCAN_INTERVAL = 60
DEFAULT_TIMEOUT = 10
DEFAULT_SUPPRESS_INITIAL_TICKS = 1
DEFAULT_COLLAPSE_ROAMING = False
MIN_SCAN_INTERVAL = 30
MAX_SCAN_INTERVAL = 3600

# Traffic is sampled twice per tick, this many seconds apart
TRAFFIC_SAMPLE_GAP = 2

SECONDS_PER_DAY = 86400

# Strict dotted-quad IPv4 check used by the config flow
IP_ADDRESS_REGEX = re.compile(
    r"^(([0-9]|[1-9][0-9]|1[0-9]{2}|2[0-4][0-9]|25[0-5])\.){3}"
    r"([0-9]|[1-9][0-9]|1[0-9]{2}|2[0-4][0-9]|25[0-5])$"
)

# WAN status code reported while the uplink is connected
WAN_STATUS_CONNECTED = 1

# Wireless bands as named by the router API
BAND_24G = "2G"
BAND_5G = "5G"

# Capabilities (entity keys) of an access point device
CAP_ONLINE_DEVICES = "online_devices"
CAP_CPU_USAGE = "cpu_usage"
CAP_MEMORY_USAGE = "memory_usage"
CAP_UPTIME_DAYS = "uptime_days"
CAP_FIRMWARE_VERSION = "firmware_version"
CAP_NEW_FIRMWARE_VERSION = "new_firmware_version"
CAP_EXTERNAL_IP = "external_ip"
CAP_WAN_TYPE = "wan_type"
CAP_ALARM_WAN_DISCONNECTED = "alarm_wan_disconnected"
CAP_TRAFFIC_TOTAL_RECEIVED = "traffic_total_received"
CAP_TRAFFIC_TOTAL_SENT = "traffic_total_sent"
CAP_REALTIME_DOWNLOAD = "realtime_download"
CAP_REALTIME_UPLOAD = "realtime_upload"

ACCESS_POINT_CAPABILITIES = (
    CAP_ONLINE_DEVICES,
    CAP_CPU_USAGE,
    CAP_MEMORY_USAGE,
    CAP_UPTIME_DAYS,
    CAP_FIRMWARE_VERSION,
    CAP_NEW_FIRMWARE_VERSION,
)

ROUTER_CAPABILITIES = ACCESS_POINT_CAPABILITIES + (
    CAP_EXTERNAL_IP,
    CAP_WAN_TYPE,
    CAP_ALARM_WAN_DISCONNECTED,
    CAP_TRAFFIC_TOTAL_RECEIVED,
    CAP_TRAFFIC_TOTAL_SENT,
    CAP_REALTIME_DOWNLOAD,
    CAP_REALTIME_UPLOAD,
)

# Bus event carrying every notification
EVENT_ASUSWRT_MESH = f"{DOMAIN}_event"

# Network-wide notifications
EVENT_DEVICE_CONNECTED_TO_NETWORK = "device_connected_to_network"
EVENT_DEVICE_DISCONNECTED_FROM_NETWORK = "device_disconnected_from_network"
EVENT_DEVICE_ROAMED = "device_roamed"

# Per access point notifications
EVENT_DEVICE_CONNECTED = "device_connected"
EVENT_DEVICE_DISCONNECTED = "device_disconnected"
EVENT_WIRED_DEVICE_CONNECTED = "wired_device_connected"
EVENT_WIRED_DEVICE_DISCONNECTED = "wired_device_disconnected"
EVENT_24G_DEVICE_CONNECTED = "24g_device_connected"
EVENT_24G_DEVICE_DISCONNECTED = "24g_device_disconnected"
EVENT_5G_DEVICE_CONNECTED = "5g_device_connected"
EVENT_5G_DEVICE_DISCONNECTED = "5g_device_disconnected"
EVENT_NEW_FIRMWARE_AVAILABLE = "new_firmware_available"
EVENT_EXTERNAL_IP_CHANGED = "external_ip_changed"
EVENT_WAN_TYPE_CHANGED = "wan_type_changed"

DEVICE_EVENT_TYPES = (
    EVENT_DEVICE_CONNECTED,
    EVENT_DEVICE_DISCONNECTED,
    EVENT_WIRED_DEVICE_CONNECTED,
    EVENT_WIRED_DEVICE_DISCONNECTED,
    EVENT_24G_DEVICE_CONNECTED,
    EVENT_24G_DEVICE_DISCONNECTED,
    EVENT_5G_DEVICE_CONNECTED,
    EVENT_5G_DEVICE_DISCONNECTED,
    EVENT_NEW_FIRMWARE_AVAILABLE,
    EVENT_EXTERNAL_IP_CHANGED,
    EVENT_WAN_TYPE_CHANGED,
)

# Event data keys
ATTR_TYPE = "type"
ATTR_DEVICE_MAC = "device_mac"
ATTR_MAC = "mac"
ATTR_IP = "ip"
ATTR_NAME = "name"
ATTR_NICKNAME = "nickname"
ATTR_VENDOR = "vendor"
ATTR_RSSI = "rssi"
ATTR_VERSION = "version"
ATTR_FROM_ACCESS_POINT = "from_access_point"
ATTR_TO_ACCESS_POINT = "to_access_point"
ATTR_UNAVAILABLE_REASON = "unavailable_reason"
ATTR_WARNING = "warning"
ATTR_FAILED_FETCHES = "failed_fetches"

# Services
SERVICE_REBOOT_NETWORK = "reboot_network"
SERVICE_SET_LEDS = "set_leds"
SERVICE_WAKE_ON_LAN = "wake_on_lan"

# User visible messages
MESSAGE_NETWORK_UNAVAILABLE = "Network not available to receive requests"
MESSAGE_DEVICE_OFFLINE = "Device not online"
MESSAGE_PARTIAL_FAILURE = (
    "Failed to retrieve (some) device info, some functionality might not work"
)

# Error messages
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_INVALID_AUTH = "invalid_auth"
ERROR_INVALID_IP = "invalid_ip"
ERROR_NO_ROUTERS = "no_routers"
ERROR_NO_DEVICES_SELECTED = "no_devices_selected"
ERROR_UNKNOWN = "unknown"
