# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package yeelight_discovery finds Yeelight smart lights on the local network.

Yeelight devices implement a small SSDP-like search protocol on UDP port 1982 (rather
than the standard SSDP port 1900). A client sends an "M-SEARCH" request with
"ST: wifi_bulb" to the multicast address 239.255.255.250:1982, and every device
answers with an HTTP-style reply whose headers describe the device: its id, the
yeelight:// control endpoint, its model, firmware version, supported control
methods, and current light state.

This package sends the search request, collects and deduplicates the replies, and
completes when a requested number of devices has been found or a timeout expires.
Controlling the devices is out of scope.
"""

from .version import __version__

from .internal_types import HostAndPort, Jsonable, JsonableDict

from .exceptions import (
    YeelightDiscoveryError,
    ConfigError,
    DiscoveryTransportError,
    BindError,
    SendError,
    NoDeviceFound,
    DiscoveryStateError,
    AlreadyStarted,
    AlreadyDestroyed,
    Destroyed,
  )

from .config import DiscoveryConfig
from .device import YeelightDevice
from .registry import DeviceRegistry
from .message import build_search_request, parse_device_info
from .discovery_socket import DiscoverySocket
from .discover import YeelightDiscovery, DiscoveryState, DeviceAddedHandler, DeviceParser, discover
from .constants import (
    YEELIGHT_MULTICAST_ADDRESS,
    YEELIGHT_DISCOVERY_PORT,
    YEELIGHT_SEARCH_TARGET,
    DEFAULT_REPLY_LIMIT,
    DEFAULT_TIMEOUT_MS,
  )

__all__ = [
    '__version__',
    'HostAndPort', 'Jsonable', 'JsonableDict',
    'YeelightDiscoveryError', 'ConfigError',
    'DiscoveryTransportError', 'BindError', 'SendError',
    'NoDeviceFound',
    'DiscoveryStateError', 'AlreadyStarted', 'AlreadyDestroyed', 'Destroyed',
    'DiscoveryConfig',
    'YeelightDevice',
    'DeviceRegistry',
    'build_search_request', 'parse_device_info',
    'DiscoverySocket',
    'YeelightDiscovery', 'DiscoveryState', 'DeviceAddedHandler', 'DeviceParser', 'discover',
    'YEELIGHT_MULTICAST_ADDRESS', 'YEELIGHT_DISCOVERY_PORT', 'YEELIGHT_SEARCH_TARGET',
    'DEFAULT_REPLY_LIMIT', 'DEFAULT_TIMEOUT_MS',
]
