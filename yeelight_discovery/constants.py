# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

YEELIGHT_MULTICAST_ADDRESS = "239.255.255.250"
"""The multicast address that Yeelight devices listen on for search requests."""

YEELIGHT_DISCOVERY_PORT = 1982
"""The UDP port used by the Yeelight search protocol."""

YEELIGHT_SEARCH_TARGET = "wifi_bulb"
"""The ST (Search-Target) header value understood by Yeelight devices."""

DEFAULT_REPLY_LIMIT = 1
"""The default number of distinct devices to collect before a discovery run succeeds early."""

DEFAULT_TIMEOUT_MS = 10000
"""The default discovery timeout, in milliseconds. 0 means wait forever."""

POLL_INTERVAL_MS = 200
"""The interval, in milliseconds, at which a discovery run evaluates whether it is complete."""
