"""
Shared fixtures for yeelight_discovery tests.

Discovery tests run over real loopback UDP sockets. The discovery under test binds
127.0.0.1:<free port> and sends its search request to 127.0.0.1 on the same port, so it
receives its own request (which is not a device reply and must be ignored). A FakeBulb
socket sends device replies to the discovery's port.
"""

import socket

import pytest

from yeelight_discovery.internal_types import *


def make_reply(
        device_id: str,
        host: str = "192.168.1.239",
        port: int = 55443,
        model: str = "color",
        name: str = "",
        power: str = "on",
        bright: int = 100,
        statement: str = "HTTP/1.1 200 OK",
      ) -> bytes:
    """Builds a device reply in the format sent by Yeelight bulbs."""
    lines = [
        statement,
        "Cache-Control: max-age=3600",
        "Date: ",
        "Ext: ",
        f"Location: yeelight://{host}:{port}",
        "Server: POSIX UPnP/1.0 YGLC/1",
        f"id: {device_id}",
        f"model: {model}",
        "fw_ver: 18",
        "support: get_prop set_default set_power toggle set_bright start_cf stop_cf set_scene cron_add cron_get cron_del set_ct_abx set_rgb",
        f"power: {power}",
        f"bright: {bright}",
        "color_mode: 2",
        "ct: 4000",
        "rgb: 16711680",
        "hue: 100",
        "sat: 35",
        f"name: {name}",
    ]
    return ("\r\n".join(lines) + "\r\n").encode("utf-8")


class FakeBulb:
    """A UDP socket that sends Yeelight device replies to a discovery socket."""

    sock: socket.socket

    def __init__(self) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))

    def send_raw(self, data: bytes, port: int) -> None:
        self.sock.sendto(data, ("127.0.0.1", port))

    def reply(self, port: int, device_id: str, **kwargs: Any) -> None:
        self.send_raw(make_reply(device_id, **kwargs), port)

    def close(self) -> None:
        self.sock.close()


@pytest.fixture
def free_udp_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def bulb() -> Iterator[FakeBulb]:
    fake_bulb = FakeBulb()
    try:
        yield fake_bulb
    finally:
        fake_bulb.close()


@pytest.fixture
def loopback_config(free_udp_port: int) -> Dict[str, Any]:
    """DiscoveryConfig keyword arguments for a discovery that runs entirely over loopback."""
    return dict(
        bind_host="127.0.0.1",
        bind_port=free_udp_port,
        multicast_host="127.0.0.1",
        debug=False,
    )


def port_is_free(port: int) -> bool:
    """Returns True if 127.0.0.1:port can be bound exclusively."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.bind(("127.0.0.1", port))
    except OSError:
        return False
    finally:
        s.close()
    return True
