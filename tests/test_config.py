import json

import pytest

from yeelight_discovery import DiscoveryConfig, ConfigError


def test_defaults():
    config = DiscoveryConfig()
    assert config.bind_host == ""
    assert config.bind_port == 1982
    assert config.multicast_host == "239.255.255.250"
    assert config.reply_limit == 1
    assert config.timeout_ms == 10000
    assert config.debug is True
    assert config.timeout == 10.0


def test_zero_timeout_is_unbounded():
    assert DiscoveryConfig(timeout_ms=0).timeout is None


@pytest.mark.parametrize("kwargs", [
    dict(reply_limit=0),
    dict(timeout_ms=-1),
    dict(bind_port=70000),
    dict(bind_port="1982"),
    dict(reply_limit=True),
    dict(multicast_host=""),
    dict(debug="yes"),
])
def test_invalid_values(kwargs):
    with pytest.raises(ConfigError):
        DiscoveryConfig(**kwargs)


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        DiscoveryConfig(reply_limit=0)


def test_config_is_immutable():
    config = DiscoveryConfig()
    with pytest.raises(AttributeError):
        config.reply_limit = 5  # type: ignore[misc]


def test_replace():
    config = DiscoveryConfig().replace(reply_limit=3, timeout_ms=0)
    assert config.reply_limit == 3
    assert config.timeout_ms == 0
    with pytest.raises(ConfigError):
        DiscoveryConfig().replace(no_such_field=1)


def test_from_json_data_accepts_camel_case_keys():
    config = DiscoveryConfig.from_json_data({
        "host": "192.168.1.2",
        "port": 1983,
        "multicastHost": "192.168.1.255",
        "limit": 4,
        "timeout": 2500,
        "debug": False,
    })
    assert config == DiscoveryConfig(
        bind_host="192.168.1.2",
        bind_port=1983,
        multicast_host="192.168.1.255",
        reply_limit=4,
        timeout_ms=2500,
        debug=False,
    )


def test_from_json_data_rejects_unknown_keys():
    with pytest.raises(ConfigError):
        DiscoveryConfig.from_json_data({"retries": 3})


def test_load(tmp_path):
    pathname = tmp_path / "discovery.json"
    pathname.write_text(json.dumps({"reply_limit": 2, "timeout_ms": 500}))
    config = DiscoveryConfig.load(str(pathname))
    assert config.reply_limit == 2
    assert config.timeout_ms == 500
    assert config.bind_port == 1982


def test_loads_rejects_bad_json():
    with pytest.raises(ConfigError):
        DiscoveryConfig.loads("{not json")
    with pytest.raises(ConfigError):
        DiscoveryConfig.loads("[1, 2]")


def test_to_jsonable_round_trips_through_from_json_data():
    config = DiscoveryConfig(reply_limit=7)
    assert DiscoveryConfig.from_json_data(config.to_jsonable()) == config
