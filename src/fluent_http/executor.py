"""
Request executor for fluent_http.

The Executor turns a frozen RequestSpec into exactly one HTTP/1.1
request/response cycle and settles it exactly once: it either returns
a buffered ResponseBuffer or a live stream, or raises one
HTTPRequestError subclass.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union, TYPE_CHECKING

from .http11 import HTTP11Connection
from .http_primitives import (
    SUPPORTED_COMPRESSIONS,
    SUPPORTED_SCHEMES,
    Headers,
    RequestSpec,
    ResponseBuffer,
    TransportOptions,
)
from .network import AsyncioNetworkBackend, NetworkBackend
from .network.utils import create_ssl_context, format_host_header, validate_port
from .streams import DecompressingStream, ResponseStream, StreamInterface
from .exceptions import (
    BufferLimitExceeded,
    HTTPRequestError,
    ProtocolError,
    TimeoutExceeded,
    TransportError,
    UnsupportedProtocol,
)

if TYPE_CHECKING:
    from .builder import RequestBuilder

logger = logging.getLogger(__name__)

SendResult = Union[ResponseBuffer, StreamInterface]


class BufferState(Enum):
    """States of a buffered response."""
    IDLE = "idle"
    HEADERS_RECEIVED = "headers_received"
    ACCUMULATING = "accumulating"
    COMPLETED = "completed"
    FAILED = "failed"


class ResponseAccumulator:
    """
    Accumulates a response body into a ResponseBuffer.

    The size limit is checked after every appended chunk; when it is
    exceeded the stream is closed and the partial buffer is dropped.
    COMPLETED and FAILED are terminal.
    """

    def __init__(self, max_buffer: Optional[int]) -> None:
        self._max_buffer = max_buffer
        self._response: Optional[ResponseBuffer] = None
        self.state = BufferState.IDLE

    def on_headers(self, status_code: int, reason_phrase: str, headers: Headers) -> None:
        if self.state is not BufferState.IDLE:
            raise RuntimeError(f"Response head already received (state: {self.state.value})")
        self._response = ResponseBuffer.create(status_code, reason_phrase, headers)
        self.state = BufferState.HEADERS_RECEIVED

    async def consume(self, stream: StreamInterface) -> ResponseBuffer:
        """
        Drain ``stream`` into the buffer.

        Returns:
            The completed ResponseBuffer

        Raises:
            BufferLimitExceeded: If the body grows past the limit
        """
        if self.state is not BufferState.HEADERS_RECEIVED or self._response is None:
            raise RuntimeError(f"Cannot consume a body in state {self.state.value}")

        response = self._response
        self.state = BufferState.ACCUMULATING
        try:
            async for chunk in stream:
                response._add_chunk(chunk)
                if self._max_buffer is not None and response.body_length > self._max_buffer:
                    raise BufferLimitExceeded(self._max_buffer, response.body_length)
        except BaseException:
            self.state = BufferState.FAILED
            self._response = None
            await stream.aclose()
            raise

        self.state = BufferState.COMPLETED
        return response


def prepare_headers(spec: RequestSpec) -> Dict[str, str]:
    """
    Compute the headers actually sent for ``spec``.

    Content type and length are derived from the body only when the
    caller did not set them; the host header is added when missing.
    """
    headers = dict(spec.headers)
    if spec.body is not None:
        content_type = spec.body.encoding.content_type
        if "content-type" not in headers and content_type is not None:
            headers["content-type"] = content_type
        if "content-length" not in headers:
            headers["content-length"] = str(len(spec.body))
    if "host" not in headers:
        headers["host"] = format_host_header(spec.host, spec.port, spec.scheme)
    return headers


def build_transport_options(spec: RequestSpec, headers: Dict[str, str]) -> TransportOptions:
    """
    Merge computed transport options with the spec's raw overrides.

    Overrides take precedence on key collision.
    """
    computed: Dict[str, Any] = {
        "protocol": spec.scheme,
        "host": spec.host,
        "port": spec.port,
        "path": spec.target,
        "method": spec.method,
        "headers": headers,
    }
    return TransportOptions.merge(computed, spec.options)


class Executor:
    """
    Performs one request/response cycle per ``send`` call.

    An executor holds only configuration, so one instance can serve any
    number of concurrent requests.
    """

    DEFAULT_READ_SIZE = 65536

    def __init__(
        self,
        backend: Optional[NetworkBackend] = None,
        read_size: Optional[int] = None,
    ):
        """
        Initialize the executor.

        Args:
            backend: Network backend to open connections with
            read_size: Maximum bytes requested per network read
        """
        self._backend = backend or AsyncioNetworkBackend()
        self._read_size = read_size or self.DEFAULT_READ_SIZE

    async def send(self, spec: Union[RequestSpec, "RequestBuilder"]) -> SendResult:
        """
        Dispatch a request.

        Args:
            spec: The request to send; a builder is built first

        Returns:
            A ResponseBuffer, or the response stream in streaming mode

        Raises:
            UnsupportedProtocol: If the scheme is neither http nor https
            TransportError: If the target is invalid or the connection fails
            ProtocolError: If a header value is not latin-1 encodable
            AbortedByPeer: If the server closes before the response completed
            BufferLimitExceeded: If a buffered body exceeds the limit
            TimeoutExceeded: If the timeout fires first (buffered mode)
        """
        if not isinstance(spec, RequestSpec):
            spec = spec.build()

        try:
            options = build_transport_options(spec, prepare_headers(spec))
        except ValueError as e:
            raise TransportError(f"Invalid request target: {e}", cause=e) from e
        if options.protocol not in SUPPORTED_SCHEMES:
            raise UnsupportedProtocol(options.protocol)
        headers = _encode_headers(options.headers)

        start_time = time.time()
        deadline = None
        if spec.has_timeout:
            deadline = asyncio.get_running_loop().time() + spec.timeout

        try:
            if deadline is None:
                result = await self._execute(spec, options, headers, None)
            else:
                result = await asyncio.wait_for(
                    self._execute(spec, options, headers, deadline),
                    timeout=spec.timeout,
                )
        except asyncio.TimeoutError:
            duration = time.time() - start_time
            logger.error(
                f"{options.method} {spec.url.geturl()} timed out after {duration:.3f}s"
            )
            raise TimeoutExceeded(timeout=spec.timeout) from None
        except HTTPRequestError as e:
            duration = time.time() - start_time
            logger.error(
                f"{options.method} {spec.url.geturl()} failed: {e} ({duration:.3f}s)"
            )
            raise

        duration = time.time() - start_time
        logger.debug(
            f"{options.method} {spec.url.geturl()} -> {result.status_code} ({duration:.3f}s)"
        )
        return result

    async def _execute(
        self,
        spec: RequestSpec,
        options: TransportOptions,
        request_headers: Headers,
        deadline: Optional[float],
    ) -> SendResult:
        connection = await self._connect(options)
        try:
            await connection.send_request(
                options.method,
                options.path,
                request_headers,
                spec.body.content if spec.body is not None else None,
            )
            status_code, reason, headers = await connection.receive_response()
            reason_phrase = reason.decode("latin-1")

            stream: StreamInterface = ResponseStream(
                connection,
                status_code,
                reason_phrase,
                headers,
                deadline=deadline,
                timeout=spec.timeout,
            )
            stream = self._decode(spec, stream)

            if spec.stream:
                return stream

            accumulator = ResponseAccumulator(spec.response_options.max_buffer)
            accumulator.on_headers(status_code, reason_phrase, headers)
            return await accumulator.consume(stream)
        except BaseException:
            await connection.close()
            raise

    async def _connect(self, options: TransportOptions) -> HTTP11Connection:
        try:
            port = validate_port(options.port)
        except ValueError as e:
            raise TransportError(str(e), cause=e) from e

        try:
            if options.protocol == "https":
                stream = await self._backend.connect_tls(
                    options.host,
                    port,
                    ssl_context=options.ssl_context or create_ssl_context(),
                    server_hostname=options.server_hostname,
                    timeout=options.connect_timeout,
                    **options.extra,
                )
            else:
                stream = await self._backend.connect_tcp(
                    options.host,
                    port,
                    timeout=options.connect_timeout,
                    **options.extra,
                )
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"Failed to connect to {options.host}:{port}: {str(e) or type(e).__name__}",
                cause=e,
            ) from e

        return HTTP11Connection(stream, read_size=options.read_size or self._read_size)

    def _decode(self, spec: RequestSpec, stream: StreamInterface) -> StreamInterface:
        if not spec.compress:
            return stream
        encoding = stream.headers.get("content-encoding", "").strip().lower()
        if encoding in SUPPORTED_COMPRESSIONS:
            logger.debug(f"Decoding {encoding} response body")
            return DecompressingStream(stream, encoding)
        return stream


def _encode_headers(headers: Mapping[str, Any]) -> Headers:
    try:
        return [
            (str(name).encode("latin-1"), str(value).encode("latin-1"))
            for name, value in headers.items()
        ]
    except UnicodeEncodeError as e:
        raise ProtocolError(f"Header is not latin-1 encodable: {e}", cause=e) from e


_default_executor: Optional[Executor] = None


async def send(spec: Union[RequestSpec, "RequestBuilder"]) -> SendResult:
    """Send a request with a shared default executor."""
    global _default_executor
    if _default_executor is None:
        _default_executor = Executor()
    return await _default_executor.send(spec)
