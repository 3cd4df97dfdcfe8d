"""
Mock network implementations for testing.

This module provides scripted implementations of NetworkStream and
NetworkBackend so the request pipeline can be exercised without
actual network connections.
"""

import asyncio
import ssl
from typing import Any, Dict, List, Optional, Tuple

from .backend import NetworkBackend
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    Serves ``data`` to the reader, optionally in pieces no larger than
    ``chunk_size``. Once the data is exhausted the stream either reports
    EOF, raises ``error``, or (with ``hang=True``) blocks until closed,
    which simulates a server that never answers.
    """

    def __init__(
        self,
        data: bytes = b"",
        chunk_size: Optional[int] = None,
        hang: bool = False,
        error: Optional[BaseException] = None,
    ):
        self._data = data
        self._position = 0
        self._chunk_size = chunk_size
        self._hang = hang
        self._error = error
        self._closed = False
        self._closed_event: Optional[asyncio.Event] = None
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []
        self.read_count = 0

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            return b""

        self.read_count += 1
        if self._position >= len(self._data):
            if self._error is not None:
                raise self._error
            if self._hang:
                if self._closed_event is None:
                    self._closed_event = asyncio.Event()
                await self._closed_event.wait()
            return b""

        size = len(self._data) - self._position
        if max_bytes is not None:
            size = min(size, max_bytes)
        if self._chunk_size is not None:
            size = min(size, self._chunk_size)

        result = self._data[self._position:self._position + size]
        self._position += size
        # Yield control like a real socket read would
        await asyncio.sleep(0)
        return result

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise BrokenPipeError("Stream is closed")

        self._write_buffer.append(data)

    async def aclose(self) -> None:
        self._closed = True
        if self._closed_event is not None:
            self._closed_event.set()

    def get_extra_info(self, name: str) -> Any:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """Add data to be available for reading."""
        self._data += data


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Responses are registered per ``(host, port)`` with ``add_response``;
    connecting to an endpoint with nothing registered fails with
    ``ConnectionRefusedError``.
    """

    def __init__(self):
        self._streams: Dict[Tuple[str, int], MockNetworkStream] = {}
        self._failures: Dict[Tuple[str, int], BaseException] = {}
        self.connections: List[Dict[str, Any]] = []

    def add_response(
        self,
        host: str,
        port: int,
        data: bytes = b"",
        **stream_kwargs: Any,
    ) -> MockNetworkStream:
        """
        Script the bytes the server at ``host:port`` will send back.

        Keyword arguments are passed to ``MockNetworkStream``.
        """
        stream = MockNetworkStream(data, **stream_kwargs)
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self._streams[(host, port)] = stream
        return stream

    def fail_connect(self, host: str, port: int, error: BaseException) -> None:
        """Make connecting to ``host:port`` raise ``error``."""
        self._failures[(host, port)] = error

    def _connect(self, host: str, port: int, **info: Any) -> MockNetworkStream:
        self.connections.append(dict(host=host, port=port, **info))
        key = (host, port)
        if key in self._failures:
            raise self._failures[key]
        if key not in self._streams:
            raise ConnectionRefusedError(f"Connection refused: {host}:{port}")
        return self._streams[key]

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> MockNetworkStream:
        return self._connect(host, port, tls=False, timeout=timeout, options=kwargs)

    async def connect_tls(
        self,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext,
        server_hostname: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> MockNetworkStream:
        stream = self._connect(
            host,
            port,
            tls=True,
            server_hostname=server_hostname or host,
            timeout=timeout,
            options=kwargs,
        )
        stream.set_extra_info("ssl_object", True)
        return stream

    def get_stream(self, host: str, port: int) -> Optional[MockNetworkStream]:
        """Get the scripted stream for an endpoint, if any."""
        return self._streams.get((host, port))

    def reset(self) -> None:
        """Reset all scripted endpoints."""
        self._streams.clear()
        self._failures.clear()
        self.connections.clear()
