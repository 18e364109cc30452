#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Configuration of a single discovery run.

A DiscoveryConfig is immutable; it is fully specified before a run starts and cannot
change while the run is in progress. It can be built from keyword arguments, or from
JSON data using either snake_case field names or the short camelCase names common in
JavaScript Yeelight clients (host, port, multicastHost, limit, timeout, debug).
"""

from __future__ import annotations

import os
import json
import dataclasses
from dataclasses import dataclass

from yeelight_discovery.internal_types import *
from .exceptions import ConfigError
from .constants import (
    YEELIGHT_MULTICAST_ADDRESS,
    YEELIGHT_DISCOVERY_PORT,
    DEFAULT_REPLY_LIMIT,
    DEFAULT_TIMEOUT_MS,
  )

_json_key_aliases: Dict[str, str] = {
    "host": "bind_host",
    "bindHost": "bind_host",
    "port": "bind_port",
    "bindPort": "bind_port",
    "multicastHost": "multicast_host",
    "limit": "reply_limit",
    "replyLimit": "reply_limit",
    "timeout": "timeout_ms",
    "timeoutMs": "timeout_ms",
  }

@dataclass(frozen=True)
class DiscoveryConfig:
    bind_host: str = ""
    """The local address to bind to. "" binds to all interfaces."""

    bind_port: int = YEELIGHT_DISCOVERY_PORT
    """The local port to bind to. The search request is also sent to this port on multicast_host."""

    multicast_host: str = YEELIGHT_MULTICAST_ADDRESS
    """The multicast (or broadcast/unicast) address the search request is sent to."""

    reply_limit: int = DEFAULT_REPLY_LIMIT
    """The number of distinct devices that ends the run early. Must be >= 1."""

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    """Milliseconds to wait for replies. 0 waits until reply_limit is reached."""

    debug: bool = True
    """If True, every received payload is logged at INFO level."""

    def __post_init__(self) -> None:
        if not isinstance(self.bind_host, str):
            raise ConfigError(f"bind_host must be a str: {self.bind_host!r}")
        if not isinstance(self.multicast_host, str) or self.multicast_host == "":
            raise ConfigError(f"multicast_host must be a non-empty str: {self.multicast_host!r}")
        for name in ('bind_port', 'reply_limit', 'timeout_ms'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an int: {value!r}")
        if not 0 <= self.bind_port <= 65535:
            raise ConfigError(f"bind_port must be in the range 0..65535: {self.bind_port}")
        if self.reply_limit < 1:
            raise ConfigError(f"reply_limit must be at least 1: {self.reply_limit}")
        if self.timeout_ms < 0:
            raise ConfigError(f"timeout_ms must not be negative: {self.timeout_ms}")
        if not isinstance(self.debug, bool):
            raise ConfigError(f"debug must be a bool: {self.debug!r}")

    @property
    def timeout(self) -> Optional[float]:
        """The timeout in seconds, or None if the run never times out."""
        return None if self.timeout_ms == 0 else self.timeout_ms / 1000.0

    def replace(self, **overrides: Any) -> DiscoveryConfig:
        """Returns a copy of this config with the given fields replaced."""
        try:
            return dataclasses.replace(self, **overrides)
        except TypeError as e:
            raise ConfigError(f"Invalid discovery config field: {e}") from e

    @classmethod
    def from_json_data(cls, json_data: Mapping[str, Jsonable]) -> DiscoveryConfig:
        field_names = set(f.name for f in dataclasses.fields(cls))
        kwargs: Dict[str, Any] = {}
        for key, value in json_data.items():
            name = _json_key_aliases.get(key, key)
            if not name in field_names:
                raise ConfigError(f"Unknown discovery config key: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def loads(cls, config_text: str) -> DiscoveryConfig:
        try:
            json_data = json.loads(config_text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Discovery config is not valid JSON: {e}") from e
        if not isinstance(json_data, dict):
            raise ConfigError("Discovery config must be a JSON object")
        return cls.from_json_data(json_data)

    @classmethod
    def load(cls, pathname: str) -> DiscoveryConfig:
        with open(os.path.expanduser(pathname), encoding='utf-8') as f:
            config_text = f.read()
        return cls.loads(config_text)

    def to_jsonable(self) -> JsonableDict:
        return dataclasses.asdict(self)
