"""
Network backend components for fluent_http.

This module provides the low-level networking abstractions the
request pipeline runs on: streams, backends and their helpers.
"""

from .backend import NetworkBackend
from .stream import NetworkStream
from .asyncio_backend import AsyncioNetworkBackend, AsyncioNetworkStream
from .mock import MockNetworkBackend, MockNetworkStream
from .utils import (
    create_ssl_context,
    format_host_header,
    is_ipv6_address,
    validate_port,
)

__all__ = [
    "NetworkBackend", 
    "NetworkStream",
    "AsyncioNetworkBackend",
    "AsyncioNetworkStream",
    "MockNetworkBackend", 
    "MockNetworkStream",
    "create_ssl_context",
    "format_host_header",
    "is_ipv6_address",
    "validate_port",
]
