#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class YeelightDiscoveryError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class ConfigError(YeelightDiscoveryError, ValueError):
  """An invalid discovery configuration value was provided."""
  pass

class DiscoveryTransportError(YeelightDiscoveryError):
  """The network endpoint could not be used. The endpoint has been released when this is raised."""
  pass

class BindError(DiscoveryTransportError):
  """The local address/port could not be bound."""
  pass

class SendError(DiscoveryTransportError):
  """The search request could not be sent."""
  pass

class NoDeviceFound(YeelightDiscoveryError):
  """The discovery timeout elapsed without any device replying.

  This is a normal negative outcome of a discovery run rather than a transport failure.
  """
  elapsed_ms: int
  """Milliseconds elapsed between sending the search request and giving up."""

  def __init__(self, elapsed_ms: int):
    super().__init__(f"No device found after timeout exceeded: {elapsed_ms} ms")
    self.elapsed_ms = elapsed_ms

class DiscoveryStateError(YeelightDiscoveryError):
  """An operation was attempted in a discovery state that does not allow it."""
  pass

class AlreadyStarted(DiscoveryStateError):
  """start() was called more than once on the same discovery instance."""
  pass

class AlreadyDestroyed(DiscoveryStateError):
  """start() was called after destroy()."""
  pass

class Destroyed(DiscoveryStateError):
  """destroy() was called while start() was still pending."""
  pass
