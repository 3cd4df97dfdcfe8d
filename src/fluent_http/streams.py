"""
Streaming framework for fluent_http.

This module provides the stream handles a response body is read
through: the raw ResponseStream pulling chunks off the connection and
the DecompressingStream that transparently decodes gzip/deflate bodies.
Consumption drives reading from the network, so backpressure is natural.
"""

import asyncio
import logging
import zlib
from abc import ABC, abstractmethod
from typing import (
    AsyncIterable,
    Dict,
    List,
    Optional,
    TYPE_CHECKING,
)

from .exceptions import HTTPRequestError, StreamError, TimeoutExceeded
from .http_primitives import Headers, headers_to_dict

if TYPE_CHECKING:
    from .http11 import HTTP11Connection  # Forward reference

logger = logging.getLogger(__name__)


class StreamInterface(ABC):
    """
    Base interface for response body streams.

    Besides the body chunks, every stream exposes the response head it
    belongs to.
    """

    status_code: int
    reason_phrase: str
    raw_headers: Headers

    @property
    def headers(self) -> Dict[str, str]:
        """Response headers with lower-cased names."""
        return headers_to_dict(self.raw_headers)

    def __aiter__(self) -> "StreamInterface":
        """Return self as async iterator."""
        return self

    @abstractmethod
    async def __anext__(self) -> bytes:
        """Get next chunk of data."""

    @abstractmethod
    async def aclose(self) -> None:
        """Close the stream and abort the underlying connection."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Get whether the stream is closed."""

    async def aread(self) -> bytes:
        """Read entire stream and return as bytes."""
        return await read_stream_to_bytes(self)

    async def __aenter__(self) -> "StreamInterface":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


class ResponseStream(StreamInterface):
    """
    Stream for HTTP response bodies.

    Pulls body chunks off the HTTP11Connection as they are consumed.
    When a deadline is given the request timeout keeps running while
    the body is read: once it passes, the connection is aborted and the
    pending or next read raises TimeoutExceeded.
    """

    def __init__(
        self,
        connection: "HTTP11Connection",
        status_code: int,
        reason_phrase: str = "",
        headers: Optional[Headers] = None,
        deadline: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize ResponseStream.

        Args:
            connection: The HTTP11Connection that owns this stream
            status_code: Response status code
            reason_phrase: Response status message
            headers: Response headers as received
            deadline: Loop time at which the request times out
            timeout: The configured timeout, for error messages
        """
        self._connection = connection
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.raw_headers = list(headers or [])
        self._deadline = deadline
        self._timeout = timeout
        self._closed = False
        self._finished = False
        self._timed_out = False
        self._bytes_read = 0

    async def __anext__(self) -> bytes:
        """Get next chunk of data."""
        if self._timed_out:
            raise TimeoutExceeded(timeout=self._timeout)
        if self._finished:
            raise StopAsyncIteration
        if self._closed:
            raise StreamError("Cannot read from closed stream")

        try:
            chunk = await self._receive()
        except asyncio.TimeoutError:
            self._timed_out = True
            await self.aclose()
            raise TimeoutExceeded(timeout=self._timeout) from None
        except HTTPRequestError:
            await self.aclose()
            raise
        except Exception as e:
            await self.aclose()
            raise StreamError(f"Error reading from stream: {e}", cause=e) from e

        if chunk is None:
            # Stream ended, release the connection
            self._finished = True
            await self.aclose()
            raise StopAsyncIteration

        self._bytes_read += len(chunk)
        return chunk

    async def _receive(self) -> Optional[bytes]:
        if self._deadline is None:
            return await self._connection.receive_body_chunk()

        remaining = self._deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise asyncio.TimeoutError()
        return await asyncio.wait_for(
            self._connection.receive_body_chunk(),
            timeout=remaining,
        )

    async def aclose(self) -> None:
        """Close the stream and cleanup resources."""
        if not self._closed:
            self._closed = True
            await self._connection.close()
            logger.debug(f"Response stream closed after {self._bytes_read} bytes")

    @property
    def closed(self) -> bool:
        """Get whether the stream is closed."""
        return self._closed

    @property
    def bytes_read(self) -> int:
        """Get the number of bytes read so far."""
        return self._bytes_read


class DecompressingStream(StreamInterface):
    """
    Stream that decodes a gzip or deflate encoded body on the fly.

    Chunks come out in the same order the compressed input arrives.
    Deflate accepts both zlib-wrapped and raw deflate data.
    """

    SUPPORTED_ENCODINGS = ("gzip", "deflate")

    def __init__(self, source: StreamInterface, encoding: str) -> None:
        """
        Initialize DecompressingStream.

        Args:
            source: The stream carrying the encoded body
            encoding: Content encoding, "gzip" or "deflate"
        """
        encoding = encoding.strip().lower()
        if encoding not in self.SUPPORTED_ENCODINGS:
            raise ValueError(f"Unsupported content encoding: {encoding!r}")

        self._source = source
        self._encoding = encoding
        self._first_input = True
        self._flushed = False
        self._decompressor = self._new_decompressor()
        self.status_code = source.status_code
        self.reason_phrase = source.reason_phrase
        self.raw_headers = source.raw_headers

    def _new_decompressor(self, raw_deflate: bool = False):
        if self._encoding == "gzip":
            return zlib.decompressobj(16 + zlib.MAX_WBITS)
        return zlib.decompressobj(-zlib.MAX_WBITS if raw_deflate else zlib.MAX_WBITS)

    async def __anext__(self) -> bytes:
        """Get next chunk of decoded data."""
        while True:
            try:
                chunk = await self._source.__anext__()
            except StopAsyncIteration:
                tail = await self._guard(self._flush)
                if tail:
                    return tail
                raise

            data = await self._guard(self._decompress, chunk)
            if data:
                return data

    async def _guard(self, func, *args) -> bytes:
        try:
            return func(*args)
        except StreamError:
            await self.aclose()
            raise

    def _decompress(self, chunk: bytes) -> bytes:
        try:
            if self._first_input and self._encoding == "deflate":
                self._first_input = False
                try:
                    return self._decompressor.decompress(chunk)
                except zlib.error:
                    # No zlib header: the server sent raw deflate
                    self._decompressor = self._new_decompressor(raw_deflate=True)
            return self._feed(chunk)
        except zlib.error as e:
            raise StreamError(f"Failed to decode {self._encoding} body: {e}", cause=e) from e

    def _feed(self, data: bytes) -> bytes:
        # A gzip body may hold several concatenated members
        if self._encoding == "gzip" and self._decompressor.eof:
            self._decompressor = self._new_decompressor()
        output = self._decompressor.decompress(data)
        while (
            self._encoding == "gzip"
            and self._decompressor.eof
            and self._decompressor.unused_data
        ):
            leftover = self._decompressor.unused_data
            self._decompressor = self._new_decompressor()
            output += self._decompressor.decompress(leftover)
        return output

    def _flush(self) -> bytes:
        if self._flushed:
            return b""
        self._flushed = True
        try:
            return self._decompressor.flush()
        except zlib.error as e:
            raise StreamError(f"Failed to decode {self._encoding} body: {e}", cause=e) from e

    async def aclose(self) -> None:
        """Close the stream and the underlying source."""
        await self._source.aclose()

    @property
    def closed(self) -> bool:
        """Get whether the stream is closed."""
        return self._source.closed

    @property
    def encoding(self) -> str:
        """Get the content encoding being decoded."""
        return self._encoding


# Utility functions for working with streams
async def read_stream_to_bytes(stream: AsyncIterable[bytes]) -> bytes:
    """
    Read entire stream and return as bytes.

    Args:
        stream: Async iterable of bytes

    Returns:
        All bytes from the stream concatenated
    """
    chunks = []
    async for chunk in stream:
        chunks.append(chunk)
    return b"".join(chunks)


async def stream_to_list(stream: AsyncIterable[bytes]) -> List[bytes]:
    """
    Convert stream to list of chunks.

    Args:
        stream: Async iterable of bytes

    Returns:
        List of byte chunks
    """
    chunks = []
    async for chunk in stream:
        chunks.append(chunk)
    return chunks
