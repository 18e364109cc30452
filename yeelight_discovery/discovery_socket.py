#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DiscoverySocket -- the single UDP endpoint owned by a discovery run. It can:

  1. Bind exclusively to a local address/port and enable broadcast
  2. Send a datagram, reporting failure synchronously as SendError
  3. Deliver every received datagram to a handler until it is closed

  Once close() returns, the handler is never called again.
"""

from __future__ import annotations

import asyncio
import socket

from yeelight_discovery.internal_types import *
from .pkg_logging import logger
from .exceptions import BindError, SendError

DatagramHandler = Callable[[bytes, HostAndPort], None]
"""A callback for received datagrams: handler(data, src_addr)."""

class _DiscoverySocketProtocol(asyncio.DatagramProtocol):
    """An adapter between the asyncio transport and DiscoverySocket."""

    discovery_socket: DiscoverySocket

    def __init__(self, discovery_socket: DiscoverySocket):
        self.discovery_socket = discovery_socket

    def connection_made(self, transport: asyncio.BaseTransport):
        """Called when a connection is made."""

        # asyncio datagram transports do not inherit from asyncio.DatagramTransport, although
        # they implement the same interface.
        self.discovery_socket.connection_made(transport) # type: ignore[arg-type]

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        """Called when some datagram is received."""
        self.discovery_socket.datagram_received(data, addr)

    def error_received(self, exc: Exception):
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)
        """
        self.discovery_socket.error_received(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the connection is lost or closed."""
        self.discovery_socket.connection_lost(exc)


class DiscoverySocket:
    """An async UDP socket bound to a single local address, used to send a search request
       and collect the replies."""

    bind_host: str
    """The local IP address to bind to. "" binds to all interfaces."""

    bind_port: int
    """The local port to bind to."""

    on_datagram: Optional[DatagramHandler] = None
    """The handler that receives datagrams. Cleared when the socket is closed."""

    sock: Optional[socket.socket] = None
    """The low-level socket, or None if not open."""

    transport: Optional[asyncio.DatagramTransport] = None
    """The asyncio transport wrapping sock, or None if not open."""

    _closed: bool = False
    _sending: bool = False
    _send_exc: Optional[Exception] = None

    def __init__(self, bind_host: str, bind_port: int, on_datagram: Optional[DatagramHandler]=None):
        self.bind_host = bind_host
        self.bind_port = bind_port
        self.on_datagram = on_datagram

    @property
    def is_open(self) -> bool:
        return not self._closed and self.transport is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def local_address(self) -> Optional[HostAndPort]:
        """The bound (ip_address, port), or None if not open."""
        if self._closed or self.sock is None:
            return None
        return self.sock.getsockname()

    def create_socket(self) -> socket.socket:
        """Creates, binds, and configures the low-level socket.

        SO_REUSEADDR is not set, so binding fails if another socket already owns the port.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.bind_host, self.bind_port))
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.setblocking(False)
        except BaseException:
            sock.close()
            raise
        return sock

    async def open(self) -> None:
        """Binds the socket and starts receiving datagrams.

        Raises BindError if the address is unavailable. If close() is called while
        open() is in progress, open() returns with the socket closed.
        """
        if self._closed:
            return
        assert self.sock is None
        try:
            sock = self.create_socket()
        except OSError as e:
            raise BindError(f"Unable to bind UDP socket to {self.bind_host or '*'}:{self.bind_port}: {e}") from e
        self.sock = sock
        loop = asyncio.get_running_loop()
        try:
            untyped_transport, protocol = await loop.create_datagram_endpoint(
                lambda: _DiscoverySocketProtocol(self),
                sock=sock
              )
        except BaseException as e:
            self.close()
            if isinstance(e, OSError):
                raise BindError(f"Unable to create datagram endpoint on {self.bind_host or '*'}:{self.bind_port}: {e}") from e
            raise
        # asyncio datagram transports do not inherit from asyncio.DatagramTransport, although
        # they implement the same interface.
        transport: asyncio.DatagramTransport = untyped_transport # type: ignore[assignment]
        if self._closed:
            transport.close()
            return
        self.transport = transport
        logger.debug(f"Created datagram endpoint for {self}. transport={transport}, protocol={protocol}")

    def sendto(self, data: bytes, addr: HostAndPort) -> None:
        """Sends a single datagram.

        Raises SendError if the transport rejects the datagram, either by raising or by
        reporting the error while the send is in progress.
        """
        if self.transport is None:
            raise SendError(f"Cannot send on {self}: socket is not open")
        logger.debug(f"Sending datagram via {self} to {addr}: {data!r}")
        self._send_exc = None
        self._sending = True
        try:
            self.transport.sendto(data, addr)
        except OSError as e:
            raise SendError(f"Unable to send datagram to {addr[0]}:{addr[1]}: {e}") from e
        finally:
            self._sending = False
        exc = self._send_exc
        self._send_exc = None
        if exc is not None:
            raise SendError(f"Unable to send datagram to {addr[0]}:{addr[1]}: {exc}") from exc

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        logger.debug(f"Connection made: {self}")

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        handler = self.on_datagram
        if self._closed or handler is None:
            return
        try:
            handler(data, addr)
        except Exception as e:
            logger.warning(f"Datagram handler raised exception processing datagram from {addr}, raw=[{data!r}]: {e}")

    def error_received(self, exc: Exception) -> None:
        if self._sending:
            self._send_exc = exc
        else:
            logger.warning(f"Error received from transport {self}: {exc}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"Connection to transport lost on {self}, exc={exc}")
        self.transport = None

    def close(self) -> None:
        """Closes the transport and the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.on_datagram = None
        transport = self.transport
        self.transport = None
        if transport is not None:
            try:
                transport.close()
            except Exception as e:
                logger.error(f"Error closing transport on {self}: {e}")
        sock = self.sock
        self.sock = None
        if sock is not None:
            try:
                sock.close()
            except OSError as e:
                logger.error(f"Error closing socket on {self}: {e}")
        logger.debug(f"Closed {self}")

    def __str__(self) -> str:
        return f"DiscoverySocket({self.bind_host or '*'}:{self.bind_port})"

    def __repr__(self) -> str:
        return str(self)
