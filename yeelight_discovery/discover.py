#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
YeelightDiscovery -- a single-shot discovery run that can:

  1. Bind a UDP socket and send a search request to the multicast address (typically 239.255.255.250:1982)
  2. Receive device replies, parse them, and collect them in a deduplicated DeviceRegistry
  3. Notify any number of device_added handlers as devices are collected
  4. Complete when reply_limit distinct devices have replied, or when timeout_ms elapses

Usage:
    async with YeelightDiscovery(reply_limit=2, timeout_ms=3000) as discovery:
        devices = await discovery.start()
"""

from __future__ import annotations

import asyncio
from asyncio import Future
import logging
import time
from enum import Enum

from yeelight_discovery.internal_types import *
from .pkg_logging import logger as pkg_logger
from .constants import POLL_INTERVAL_MS
from .exceptions import (
    DiscoveryTransportError,
    NoDeviceFound,
    AlreadyStarted,
    AlreadyDestroyed,
    Destroyed,
  )
from .config import DiscoveryConfig
from .device import YeelightDevice
from .registry import DeviceRegistry
from .message import build_search_request, parse_device_info
from .discovery_socket import DiscoverySocket

DeviceAddedHandler = Callable[[YeelightDevice], None]
"""A callback invoked with each device record as it is added to or updated in the registry."""

DeviceParser = Callable[[str], Optional[YeelightDevice]]
"""Converts the text of a received datagram into a device record, or None if it is not a device reply."""

class DiscoveryState(Enum):
    IDLE = "idle"
    BOUND = "bound"
    SENDING = "sending"
    POLLING = "polling"
    SUCCESS = "success"
    FAILURE = "failure"
    DESTROYED = "destroyed"

class YeelightDiscovery(AsyncContextManager['YeelightDiscovery']):
    """
    Discovers Yeelight devices on the local network.

    An instance performs at most one discovery run. To search again, create a new instance.
    """

    poll_interval: float = POLL_INTERVAL_MS / 1000.0
    """The interval (in seconds) at which the completion policy is evaluated."""

    _config: DiscoveryConfig
    _parser: DeviceParser
    _logger: logging.Logger
    _registry: DeviceRegistry
    _state: DiscoveryState = DiscoveryState.IDLE
    _started: bool = False
    _socket: Optional[DiscoverySocket] = None
    _poller_task: Optional[asyncio.Task[None]] = None
    _final_result: Optional[Future[List[YeelightDevice]]] = None
    _send_time: float = 0.0

    device_added_handlers: Dict[int, DeviceAddedHandler]
    """Handlers called when a device record is added or updated, indexed by ID number."""

    i_next_device_added_handler: int = 0
    """The next device_added handler ID to assign."""

    def __init__(
            self,
            config: Optional[DiscoveryConfig]=None,
            parser: Optional[DeviceParser]=None,
            logger: Optional[logging.Logger]=None,
            **overrides: Any
          ) -> None:
        """Create a discovery run.

        Parameters:
            config:     The configuration for the run. Defaults to DiscoveryConfig().
            parser:     Converts received datagram text into a YeelightDevice, or None. Defaults
                          to parse_device_info.
            logger:     The logger to use. Defaults to the package logger.
            overrides:  DiscoveryConfig fields (bind_host, bind_port, multicast_host, reply_limit,
                          timeout_ms, debug) that replace the corresponding values in config.
        """
        if config is None:
            config = DiscoveryConfig(**overrides)
        elif len(overrides) > 0:
            config = config.replace(**overrides)
        self._config = config
        self._parser = parse_device_info if parser is None else parser
        self._logger = pkg_logger if logger is None else logger
        self._registry = DeviceRegistry()
        self.device_added_handlers = {}

    @property
    def config(self) -> DiscoveryConfig:
        return self._config

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def devices(self) -> List[YeelightDevice]:
        """A snapshot of the devices collected so far, in first-seen order."""
        return self._registry.snapshot()

    @property
    def local_address(self) -> Optional[HostAndPort]:
        """The bound (ip_address, port) while the socket is open, otherwise None."""
        return None if self._socket is None else self._socket.local_address

    def add_device_added_handler(self, handler: DeviceAddedHandler) -> int:
        """Adds a handler to be called each time a device record is added or updated.

        Handlers are called synchronously from the datagram receive path and must not block.
        Returns an ID that can be passed to remove_device_added_handler().
        """
        i = self.i_next_device_added_handler
        self.i_next_device_added_handler += 1
        self.device_added_handlers[i] = handler
        return i

    def remove_device_added_handler(self, i: int) -> None:
        """Removes a previously added device_added handler."""
        del self.device_added_handlers[i]

    async def start(self) -> List[YeelightDevice]:
        """Runs the discovery and returns the devices found, in first-seen order.

        Completes as soon as reply_limit distinct devices have replied. Otherwise, when timeout_ms
        elapses, returns the devices found so far, or raises NoDeviceFound if there are none. If
        timeout_ms is 0, only reply_limit or destroy() end the run.

        Raises:
            AlreadyStarted:   start() has already been called on this instance.
            AlreadyDestroyed: destroy() has already been called on this instance.
            BindError:        The local address could not be bound.
            SendError:        The search request could not be sent.
            NoDeviceFound:    The timeout elapsed with no device replies.
            Destroyed:        destroy() was called before the run completed.
        """
        if self._state == DiscoveryState.DESTROYED:
            raise AlreadyDestroyed("Discovery instance has been destroyed")
        if self._started:
            raise AlreadyStarted("Discovery has already been started; create a new instance to search again")
        self._started = True
        final_result: Future[List[YeelightDevice]] = asyncio.get_running_loop().create_future()
        self._final_result = final_result
        try:
            try:
                await self._open_socket()
                if not final_result.done():
                    self._send_search_request()
            except DiscoveryTransportError as e:
                self._finish(DiscoveryState.FAILURE, exc=e)
            if not final_result.done():
                self._set_state(DiscoveryState.POLLING)
                self._poller_task = asyncio.create_task(self._run_poller())
            return await final_result
        finally:
            # The caller's task may have been cancelled while the run was still in progress
            if not final_result.done():
                final_result.cancel()
            if final_result.cancelled() and self._state != DiscoveryState.DESTROYED:
                self._set_state(DiscoveryState.FAILURE)
            self._release()

    async def destroy(self) -> None:
        """Removes all handlers, stops the poller, and closes the socket.

        Safe to call at any time, including before start() and more than once. A pending
        start() raises Destroyed. No datagram is processed after destroy() returns.
        """
        self.device_added_handlers.clear()
        if self._state == DiscoveryState.DESTROYED:
            return
        self._set_state(DiscoveryState.DESTROYED)
        final_result = self._final_result
        if final_result is not None and not final_result.done():
            final_result.set_exception(Destroyed("Discovery was destroyed before it completed"))
        poller_task = self._release()
        if poller_task is not None:
            try:
                await poller_task
            except asyncio.CancelledError:
                pass

    async def _open_socket(self) -> None:
        config = self._config
        discovery_socket = DiscoverySocket(config.bind_host, config.bind_port, self._on_datagram)
        self._socket = discovery_socket
        await discovery_socket.open()
        if discovery_socket.is_open:
            self._set_state(DiscoveryState.BOUND)

    def _send_search_request(self) -> None:
        config = self._config
        assert self._socket is not None
        self._set_state(DiscoveryState.SENDING)
        request = build_search_request(config.multicast_host, config.bind_port)
        self._socket.sendto(request, (config.multicast_host, config.bind_port))
        self._send_time = time.monotonic()
        self._logger.debug(f"Sent search request to {config.multicast_host}:{config.bind_port}")

    async def _run_poller(self) -> None:
        self._logger.debug(f"Discovery poller starting, limit={self._config.reply_limit}, timeout_ms={self._config.timeout_ms}")
        final_result = self._final_result
        assert final_result is not None
        while not final_result.done():
            await asyncio.sleep(self.poll_interval)
            self._poll()
        self._logger.debug("Discovery poller exiting")

    def _poll(self) -> None:
        """Evaluates the completion policy. The reply limit takes precedence over the timeout."""
        config = self._config
        elapsed_ms = int((time.monotonic() - self._send_time) * 1000)
        n = self._registry.count()
        if n >= config.reply_limit:
            self._logger.debug(f"Reply limit reached: {n} device(s) after {elapsed_ms} ms")
            self._finish(DiscoveryState.SUCCESS, devices=self._registry.snapshot())
        elif config.timeout_ms > 0 and elapsed_ms >= config.timeout_ms:
            if n > 0:
                self._logger.debug(f"Timeout reached with {n} device(s) after {elapsed_ms} ms")
                self._finish(DiscoveryState.SUCCESS, devices=self._registry.snapshot())
            else:
                self._finish(DiscoveryState.FAILURE, exc=NoDeviceFound(elapsed_ms))

    def _on_datagram(self, data: bytes, addr: HostAndPort) -> None:
        message = data.decode('utf-8', errors='replace')
        if self._config.debug:
            self._logger.info(f"Received datagram from {addr[0]}:{addr[1]}: {message!r}")
        else:
            self._logger.debug(f"Received datagram from {addr[0]}:{addr[1]}: {message!r}")
        try:
            device = self._parser(message)
        except Exception as e:
            self._logger.debug(f"Ignoring datagram from {addr[0]}:{addr[1]} that could not be parsed: {e}")
            return
        if device is None:
            return
        added = self._registry.upsert(device)
        self._logger.debug(f"{'Added' if added else 'Updated'} {device}")
        self._notify_device_added(device)

    def _notify_device_added(self, device: YeelightDevice) -> None:
        for handler in list(self.device_added_handlers.values()):
            try:
                handler(device)
            except Exception as e:
                self._logger.warning(f"device_added handler raised exception for {device}: {e}")

    def _finish(
            self,
            state: DiscoveryState,
            devices: Optional[List[YeelightDevice]]=None,
            exc: Optional[BaseException]=None
          ) -> None:
        final_result = self._final_result
        if final_result is None or final_result.done():
            return
        self._set_state(state)
        if exc is None:
            assert devices is not None
            final_result.set_result(devices)
        else:
            self._logger.debug(f"Discovery failed: {exc}")
            final_result.set_exception(exc)
        self._release()

    def _release(self) -> Optional[asyncio.Task[None]]:
        """Cancels the poller and closes the socket. Returns the poller task if it was cancelled."""
        poller_task = self._poller_task
        self._poller_task = None
        if poller_task is not None and (poller_task is asyncio.current_task() or poller_task.done()):
            poller_task = None
        if poller_task is not None:
            poller_task.cancel()
        if self._socket is not None:
            self._socket.close()
        return poller_task

    def _set_state(self, state: DiscoveryState) -> None:
        if state != self._state:
            self._logger.debug(f"Discovery state {self._state.value} -> {state.value}")
            self._state = state

    async def __aenter__(self) -> YeelightDiscovery:
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        await self.destroy()
        return False

    def __str__(self) -> str:
        return f"YeelightDiscovery({self._state.value}, {len(self._registry)} device(s))"

    def __repr__(self) -> str:
        return str(self)

async def discover(
        config: Optional[DiscoveryConfig]=None,
        on_device_added: Optional[DeviceAddedHandler]=None,
        **overrides: Any
      ) -> List[YeelightDevice]:
    """Runs a single discovery and returns the devices found. The discovery is always destroyed
       before returning.

    Parameters:
        config:           The configuration for the run. Defaults to DiscoveryConfig().
        on_device_added:  An optional handler called as each device record is added or updated.
        overrides:        DiscoveryConfig fields that replace the corresponding values in config.
    """
    async with YeelightDiscovery(config, **overrides) as discovery:
        if on_device_added is not None:
            discovery.add_device_added_handler(on_device_added)
        return await discovery.start()
