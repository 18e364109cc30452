import pytest

from yeelight_discovery import build_search_request, parse_device_info, YeelightDevice

from conftest import make_reply


def test_default_search_request_matches_vendor_request():
    assert build_search_request() == (
        b'M-SEARCH * HTTP/1.1\r\n'
        b'HOST: 239.255.255.250:1982\r\n'
        b'MAN: "ssdp:discover"\r\n'
        b'ST: wifi_bulb\r\n'
    )


def test_search_request_uses_target_address():
    request = build_search_request("192.168.1.255", 1983)
    lines = request.split(b'\r\n')
    assert lines[0] == b'M-SEARCH * HTTP/1.1'
    assert lines[1] == b'HOST: 192.168.1.255:1983'
    assert request.endswith(b'ST: wifi_bulb\r\n')
    assert not request.endswith(b'\r\n\r\n')


def test_parse_reply():
    device = parse_device_info(make_reply("0x000000000015243f", name="desk").decode())
    assert isinstance(device, YeelightDevice)
    assert device.id == "0x000000000015243f"
    assert device.location == "yeelight://192.168.1.239:55443"
    assert device.address == ("192.168.1.239", 55443)
    assert device.model == "color"
    assert device.fw_ver == 18
    assert device.power is True
    assert device.bright == 100
    assert device.color_mode == 2
    assert device.ct == 4000
    assert device.rgb == 16711680
    assert device.hue == 100
    assert device.sat == 35
    assert device.name == "desk"
    assert device.supports("set_rgb")
    assert not device.supports("set_music")
    assert dict(device.headers)["Server"] == "POSIX UPnP/1.0 YGLC/1"


def test_parse_notify_advertisement():
    device = parse_device_info(make_reply("0x1", statement="NOTIFY * HTTP/1.1", power="off").decode())
    assert device is not None
    assert device.id == "0x1"
    assert device.power is False


def test_parse_accepts_bare_lf_and_mixed_case_headers():
    message = (
        "HTTP/1.1 200 OK\n"
        "LOCATION: yeelight://10.0.0.5:55443\n"
        "ID: 0xabc\n"
        "Model: mono\n"
    )
    device = parse_device_info(message)
    assert device is not None
    assert device.id == "0xabc"
    assert device.host == "10.0.0.5"
    assert device.model == "mono"
    assert device.name is None
    assert device.support == ()


def test_parse_non_ascii_name():
    message = make_reply("0x9", name="卧室灯").decode("utf-8")
    device = parse_device_info(message)
    assert device is not None
    assert device.name == "卧室灯"
    assert ("name", "卧室灯") in device.headers


def test_lenient_integer_fields():
    message = make_reply("0x2").decode().replace("bright: 100", "bright: bright")
    device = parse_device_info(message)
    assert device is not None
    assert device.bright is None


@pytest.mark.parametrize("message", [
    "",
    "garbage",
    build_search_request().decode(),
    "HTTP/1.1 404 Not Found\r\nid: 0x1\r\nLocation: yeelight://1.2.3.4:55443\r\n",
    "HTTP/1.1 200 OK\r\nLocation: yeelight://1.2.3.4:55443\r\n",
    "HTTP/1.1 200 OK\r\nid: 0x1\r\n",
    "HTTP/1.1 200 OK\r\nid: 0x1\r\nLocation: http://1.2.3.4:55443\r\n",
    "HTTP/1.1 200 OK\r\nid: 0x1\r\nLocation: yeelight://1.2.3.4\r\n",
])
def test_non_device_messages_are_rejected(message):
    assert parse_device_info(message) is None


def test_device_records_are_immutable():
    device = parse_device_info(make_reply("0x3").decode())
    with pytest.raises(AttributeError):
        device.name = "other"  # type: ignore[misc]


def test_to_jsonable():
    device = parse_device_info(make_reply("0x4", name="porch").decode())
    data = device.to_jsonable()
    assert data["id"] == "0x4"
    assert data["host"] == "192.168.1.239"
    assert data["port"] == 55443
    assert data["name"] == "porch"
    assert "set_power" in data["support"]
