#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints and common typing imports used throughout this package"""

from __future__ import annotations

from typing import (
    Dict, List, Optional, Union, Any, Tuple, Callable, Awaitable,
    Iterable, Iterator, Mapping, Sequence, Set, AsyncContextManager,
    Type, TypeVar, cast
  )

from types import TracebackType

from typing_extensions import SupportsIndex

HostAndPort = Tuple[str, int]
"""An (ip_address, port) tuple as used by the socket module."""

Jsonable = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
"""A value that can be serialized with json.dumps()."""

JsonableDict = Dict[str, Jsonable]
"""A dict that can be serialized with json.dumps()."""
