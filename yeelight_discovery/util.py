#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Simple utility functions used by this package
"""

from __future__ import annotations

import netifaces

from yeelight_discovery.internal_types import *

from email.parser import HeaderParser
from email.message import Message as EmailParserMessage
from email.header import Header as EmailParserHeader
from requests.structures import CaseInsensitiveDict

def split_lines_at_lf_or_crlf(text: str, maxsplit: SupportsIndex = -1) -> List[str]:
    """Split a string at LF or CRLF.

    If maxsplit is given, at most maxsplit splits are done.

    Returns a List[str] representing the delimited lines with the delimiters removed.
    """
    parts = text.split('\n', maxsplit)
    if len(parts) > 1:
        for i, part in enumerate(parts[:-1]):
            if part.endswith('\r'):
                parts[i] = part[:-1]
    return parts

def split_headers_and_body(text: str) -> Tuple[str, str]:
    """Spits a string with HTTP headers and an optional body into the headers and the body.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard.

    Returns a Tuple[headers: str, body: str]. If there is no body, '' is returned for the body.
    """
    delims = ['\n\r\n', '\n\n']
    first_i = -1
    first_nb = 0

    for delim in delims:
        i = text.find(delim)
        if i != -1:
            if first_i == -1 or i < first_i:
                first_i = i
                first_nb = len(delim)
    if first_i == -1:
        headers, body = text, ''
    else:
        headers, body = text[:first_i], text[first_i + first_nb:]
        if headers.endswith('\r'):
            headers = headers[:-1]

    return (headers, body)

def parse_http_headers(text: str) -> Tuple[CaseInsensitiveDict[str], str]:
    """Parse HTTP-style headers out of an already decoded string. Also returns the body of the message, if any.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard.  The final line of the headers does not need to be terminated by a newline. If
    there is a body, it is separated from the headers with '\r\n\r\n', '\n\n', '\r\n\n', or '\r\n\n'.

    It is assumed that any preceding statement line (e.g., "HTTP/1.1 200 OK\r\n") has already been removed.

    The headers are parsed as text, so non-ASCII values (e.g., a device name in UTF-8) are returned
    unchanged. Header values are stripped of surrounding whitespace; no other decoding is performed.

    Returns a tuple of (headers: CaseInsensitiveDict[str], body: str).
    """

    headers_text, body = split_headers_and_body(text)
    headers_text = '\r\n'.join(split_lines_at_lf_or_crlf(headers_text))

    msg: EmailParserMessage = HeaderParser().parsestr(headers_text)
    headers: CaseInsensitiveDict[str] = CaseInsensitiveDict(
        (name, str(value).strip()) for name, value in msg.items()
      )
    return (headers, body)

def encode_http_header(name: str, value: str) -> bytes:
    """Encodes a raw HTTP header name/value pair into a byte string.

    RFC 2822 line wrapping is provided.
    The result is terminated with '\r\n'.
    """
    h = EmailParserHeader(value, header_name=name)
    return name.encode() + b': ' + h.encode(linesep='\r\n').encode() + b'\r\n'

def get_interface_ipv4_address(ifname: str) -> Optional[str]:
    """Returns the first IPv4 address assigned to the named network interface, or None
       if the interface does not exist or has no IPv4 address."""
    if ifname not in netifaces.interfaces():
        return None
    ifinfo = netifaces.ifaddresses(ifname)
    addrinfos = ifinfo.get(netifaces.AF_INET, [])
    if len(addrinfos) == 0:
        return None
    ip_str = addrinfos[0]['addr']
    assert isinstance(ip_str, str)
    return ip_str

def get_interface_names() -> List[str]:
    """Returns the names of all local network interfaces."""
    return list(netifaces.interfaces())
