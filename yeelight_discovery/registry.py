#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DeviceRegistry -- the ordered, deduplicated collection of devices found during a discovery run.
"""

from __future__ import annotations

import threading

from yeelight_discovery.internal_types import *
from .device import YeelightDevice

class DeviceRegistry:
    """An in-memory collection of YeelightDevice records keyed by device id.

    Devices are kept in the order in which their id was first seen. At most one
    record exists per id; a newer record replaces the older one in place.
    """

    _devices: List[YeelightDevice]
    """The records, in first-seen order."""

    _index: Dict[str, int]
    """Maps a device id to the position of its record in _devices."""

    _lock: threading.Lock

    def __init__(self) -> None:
        self._devices = []
        self._index = {}
        self._lock = threading.Lock()

    def upsert(self, device: YeelightDevice) -> bool:
        """Adds a device, or replaces the existing record with the same id.

        Returns True if the id had not been seen before, False if an existing record was replaced.
        """
        with self._lock:
            i = self._index.get(device.id)
            if i is None:
                self._index[device.id] = len(self._devices)
                self._devices.append(device)
                return True
            self._devices[i] = device
            return False

    def snapshot(self) -> List[YeelightDevice]:
        """Returns a new list of the current records in first-seen order."""
        with self._lock:
            return list(self._devices)

    def count(self) -> int:
        with self._lock:
            return len(self._devices)

    def get(self, device_id: str) -> Optional[YeelightDevice]:
        with self._lock:
            i = self._index.get(device_id)
            return None if i is None else self._devices[i]

    def __contains__(self, device_id: object) -> bool:
        with self._lock:
            return device_id in self._index

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[YeelightDevice]:
        return iter(self.snapshot())

    def __str__(self) -> str:
        return f"DeviceRegistry({[device.id for device in self.snapshot()]})"

    def __repr__(self) -> str:
        return str(self)
