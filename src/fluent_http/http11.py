"""
HTTP/1.1 connection implementation for fluent_http.

This module implements the HTTP11Connection class that drives a single
HTTP/1.1 request/response cycle over a NetworkStream using h11.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import h11

from .http_primitives import Headers
from .network.stream import NetworkStream
from .exceptions import (
    AbortedByPeer,
    ProtocolError,
    StreamError,
    TransportError,
)

logger = logging.getLogger(__name__)

ResponseHead = Tuple[int, bytes, Headers]


class ConnectionState(Enum):
    """States of an HTTP/1.1 connection."""
    NEW = "new"           # Connection created, nothing sent yet
    ACTIVE = "active"     # Request sent, response in progress
    DONE = "done"         # Response fully received
    CLOSED = "closed"     # Connection closed


class HTTP11Connection:
    """
    HTTP/1.1 connection for one request/response cycle.

    Socket failures become TransportError, malformed responses become
    ProtocolError and a peer that hangs up before the response is
    complete becomes AbortedByPeer.
    """

    DEFAULT_READ_SIZE = 65536  # 64KB chunks

    def __init__(
        self,
        stream: NetworkStream,
        read_size: Optional[int] = None,
    ):
        """
        Initialize HTTP/1.1 connection.

        Args:
            stream: The NetworkStream to use for communication
            read_size: Maximum bytes requested per network read
        """
        self._stream = stream
        self._h11_connection = h11.Connection(h11.CLIENT)
        self._state = ConnectionState.NEW
        self._read_size = read_size or self.DEFAULT_READ_SIZE
        self._peer_closed = False

        # Metrics
        self._bytes_sent = 0
        self._bytes_received = 0

        logger.debug("HTTP/1.1 connection initialized")

    async def send_request(
        self,
        method: str,
        target: str,
        headers: Headers,
        body: Optional[bytes] = None,
    ) -> None:
        """
        Send the request head and, if given, the body.

        Args:
            method: HTTP method
            target: Request target (path and query string)
            headers: List of (name, value) header tuples
            body: Optional body bytes, written before end-of-message
        """
        if self._state is not ConnectionState.NEW:
            raise ProtocolError(f"Cannot send a request in state {self._state.value}")
        self._state = ConnectionState.ACTIVE

        try:
            await self._send_event(
                h11.Request(method=method, target=target, headers=headers)
            )
            if body:
                await self._send_event(h11.Data(data=body))
            await self._send_event(h11.EndOfMessage())
        except h11.LocalProtocolError as e:
            raise ProtocolError(f"Invalid request: {e}", cause=e) from e

        logger.debug(f"Sent {method} {target} ({len(body or b'')} body bytes)")

    async def _send_event(self, event: h11.Event) -> None:
        """
        Send an h11 event to the network stream.

        Args:
            event: The h11 event to send
        """
        data = self._h11_connection.send(event)
        if data:
            try:
                await self._stream.write(data)
            except OSError as e:
                raise TransportError(f"Failed to send request: {e}", cause=e) from e
            self._bytes_sent += len(data)

    async def receive_response(self) -> ResponseHead:
        """
        Receive the response head, skipping informational responses.

        Returns:
            Tuple of (status code, reason phrase, headers)
        """
        while True:
            event = await self._next_event()

            if isinstance(event, h11.Response):
                logger.debug(f"Response head received: {event.status_code}")
                return event.status_code, event.reason, list(event.headers)

            if isinstance(event, h11.InformationalResponse):
                continue

            raise ProtocolError(f"Unexpected event before response head: {event!r}")

    async def receive_body_chunk(self) -> Optional[bytes]:
        """
        Receive a chunk of response body.

        Returns:
            Chunk of data or None at the end of the body
        """
        if self._state is ConnectionState.DONE:
            return None

        while True:
            event = await self._next_event()

            if isinstance(event, h11.Data):
                if event.data:
                    return bytes(event.data)
                continue

            if isinstance(event, h11.EndOfMessage):
                self._state = ConnectionState.DONE
                return None

            if isinstance(event, h11.ConnectionClosed):
                raise AbortedByPeer()

    async def _next_event(self) -> Any:
        """Pull the next h11 event, reading from the network as needed."""
        while True:
            try:
                event = self._h11_connection.next_event()
            except h11.RemoteProtocolError as e:
                if self._peer_closed:
                    raise AbortedByPeer(cause=e) from e
                raise ProtocolError(str(e), cause=e) from e

            if event is not h11.NEED_DATA:
                return event

            data = await self._read()
            if not data:
                self._peer_closed = True
            self._h11_connection.receive_data(data)

    async def _read(self) -> bytes:
        if self._state is ConnectionState.CLOSED:
            raise StreamError("Cannot read from a closed connection")
        try:
            data = await self._stream.read(self._read_size)
        except OSError as e:
            raise TransportError(f"Failed to read response: {e}", cause=e) from e
        self._bytes_received += len(data)
        return data

    async def close(self) -> None:
        """
        Close the connection and cleanup resources.

        Closing while a response is in progress aborts it.
        """
        if self._state is ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        await self._stream.aclose()

        logger.debug(
            f"Connection closed ({self._bytes_sent} bytes sent, "
            f"{self._bytes_received} bytes received)"
        )

    @property
    def is_closed(self) -> bool:
        """Check if connection is closed."""
        return self._state is ConnectionState.CLOSED

    @property
    def state(self) -> ConnectionState:
        """Get the connection state."""
        return self._state

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get connection metrics.

        Returns:
            Dictionary with connection metrics
        """
        return {
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "state": self._state.value,
        }
