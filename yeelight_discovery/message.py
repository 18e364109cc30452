#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Encoding of the Yeelight search request and decoding of device replies.

A search request is an SSDP-style M-SEARCH sent to the multicast address:

    M-SEARCH * HTTP/1.1
    HOST: 239.255.255.250:1982
    MAN: "ssdp:discover"
    ST: wifi_bulb

Devices answer with a unicast "HTTP/1.1 200 OK" reply, and periodically multicast a
"NOTIFY * HTTP/1.1" advertisement; both carry the same headers:

    Location: yeelight://192.168.1.239:55443
    id: 0x000000000015243f
    model: color
    fw_ver: 18
    support: get_prop set_default set_power toggle ...
    power: on
    bright: 100
    ...
"""

from __future__ import annotations

import re

from yeelight_discovery.internal_types import *
from .pkg_logging import logger
from .constants import YEELIGHT_MULTICAST_ADDRESS, YEELIGHT_DISCOVERY_PORT, YEELIGHT_SEARCH_TARGET
from .device import YeelightDevice
from .util import (
    CaseInsensitiveDict,
    split_lines_at_lf_or_crlf,
    parse_http_headers,
    encode_http_header,
)

def build_search_request(
        multicast_host: str=YEELIGHT_MULTICAST_ADDRESS,
        port: int=YEELIGHT_DISCOVERY_PORT,
        search_target: str=YEELIGHT_SEARCH_TARGET,
      ) -> bytes:
    """Returns the raw bytes of a search request addressed to multicast_host:port.

    Every line, including the last header, is terminated with CRLF. There is no body.
    """
    raw_data = b'M-SEARCH * HTTP/1.1\r\n'
    raw_data += encode_http_header('HOST', f"{multicast_host}:{port}")
    raw_data += encode_http_header('MAN', '"ssdp:discover"')
    raw_data += encode_http_header('ST', search_target)
    return raw_data

_statement_re = re.compile(r'^(HTTP/[0-9]+\.[0-9]+ +200( +.*)?|NOTIFY +\* +HTTP/[0-9]+\.[0-9]+) *$')
_location_re = re.compile(r'^yeelight://(?P<host>[^:/\s]+):(?P<port>[0-9]+)/?$')

def _get_int(headers: CaseInsensitiveDict[str], name: str) -> Optional[int]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None

def _get_str(headers: CaseInsensitiveDict[str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None or value == '':
        return None
    return value

def _get_power(headers: CaseInsensitiveDict[str]) -> Optional[bool]:
    value = headers.get('power')
    if value is None:
        return None
    value = value.lower()
    if value == 'on':
        return True
    if value == 'off':
        return False
    return None

def parse_device_info(message: str) -> Optional[YeelightDevice]:
    """Parses the text of a received datagram into a YeelightDevice.

    Returns None if the message is not a device reply or advertisement; e.g., a search
    request from another client, a reply without an "id" header, or a reply without a
    valid yeelight:// Location. Never raises on malformed input.
    """
    statement_and_remainder = split_lines_at_lf_or_crlf(message, 1)
    statement_line = statement_and_remainder[0].strip()
    if not _statement_re.match(statement_line):
        return None
    remainder = '' if len(statement_and_remainder) < 2 else statement_and_remainder[1]
    try:
        headers, _ = parse_http_headers(remainder)
    except Exception as e:
        logger.debug(f"Unable to parse headers of [{message!r}]: {e}")
        return None

    device_id = _get_str(headers, 'id')
    location = _get_str(headers, 'Location')
    if device_id is None or location is None:
        return None
    m = _location_re.match(location)
    if not m:
        return None

    support_str = headers.get('support', '')
    return YeelightDevice(
        id=device_id,
        location=location,
        host=m.group('host'),
        port=int(m.group('port')),
        model=_get_str(headers, 'model'),
        fw_ver=_get_int(headers, 'fw_ver'),
        support=tuple(support_str.split()),
        power=_get_power(headers),
        bright=_get_int(headers, 'bright'),
        color_mode=_get_int(headers, 'color_mode'),
        ct=_get_int(headers, 'ct'),
        rgb=_get_int(headers, 'rgb'),
        hue=_get_int(headers, 'hue'),
        sat=_get_int(headers, 'sat'),
        name=_get_str(headers, 'name'),
        headers=tuple(headers.items()),
      )
