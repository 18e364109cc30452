#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
YeelightDevice -- an immutable record describing one device that answered a search request.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from yeelight_discovery.internal_types import *

@dataclass(frozen=True)
class YeelightDevice:
    """A device discovered on the local network.

    Instances are never modified. A newer reply from the same device produces a new
    YeelightDevice that replaces the old one.
    """

    id: str
    """The device identifier (e.g., "0x000000000015243f"). Stable for a physical device."""

    location: str
    """The control endpoint URL advertised by the device (e.g., "yeelight://192.168.1.239:55443")."""

    host: str
    """The IP address of the control endpoint."""

    port: int
    """The TCP port of the control endpoint."""

    model: Optional[str] = None
    """The product model (e.g., "color", "mono", "stripe")."""

    fw_ver: Optional[int] = None
    """The firmware version."""

    support: Tuple[str, ...] = ()
    """The control methods supported by the device (e.g., "set_power", "set_rgb")."""

    power: Optional[bool] = None
    """True if the light is on, False if off, None if not reported."""

    bright: Optional[int] = None
    """Brightness percentage, 1-100."""

    color_mode: Optional[int] = None
    """1 = RGB, 2 = color temperature, 3 = HSV."""

    ct: Optional[int] = None
    """Color temperature in Kelvin."""

    rgb: Optional[int] = None
    """RGB color as a 24-bit integer."""

    hue: Optional[int] = None
    """Hue, 0-359."""

    sat: Optional[int] = None
    """Saturation, 0-100."""

    name: Optional[str] = None
    """The user-assigned device name, if any."""

    headers: Tuple[Tuple[str, str], ...] = field(default=(), compare=False, repr=False)
    """All headers of the reply this record was built from, in arrival order."""

    @property
    def address(self) -> HostAndPort:
        """The (host, port) of the control endpoint."""
        return (self.host, self.port)

    def supports(self, method: str) -> bool:
        return method in self.support

    def to_jsonable(self) -> JsonableDict:
        return {
            "id": self.id,
            "location": self.location,
            "host": self.host,
            "port": self.port,
            "model": self.model,
            "fw_ver": self.fw_ver,
            "support": list(self.support),
            "power": self.power,
            "bright": self.bright,
            "color_mode": self.color_mode,
            "ct": self.ct,
            "rgb": self.rgb,
            "hue": self.hue,
            "sat": self.sat,
            "name": self.name,
        }

    def __str__(self) -> str:
        return f"YeelightDevice({self.id} {self.model} @ {self.host}:{self.port})"
