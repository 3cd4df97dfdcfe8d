"""
fluent_http - minimal fluent HTTP/HTTPS client

Build a request declaratively, send it once, and get back either a
fully buffered response or a live byte stream, with transparent
gzip/deflate decoding and a bounded response buffer.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .http_primitives import (
    Body,
    BodyEncoding,
    RequestSpec,
    ResponseBuffer,
    ResponseOptions,
    TransportOptions,
)
from .builder import RequestBuilder, request
from .executor import BufferState, Executor, ResponseAccumulator, send
from .http11 import HTTP11Connection, ConnectionState
from .exceptions import (
    HTTPRequestError,
    TransportError,
    ProtocolError,
    UnsupportedProtocol,
    StreamError,
    AbortedByPeer,
    BufferLimitExceeded,
    TimeoutExceeded,
    RequestAlreadySent,
)
from .streams import (
    StreamInterface,
    ResponseStream,
    DecompressingStream,
    read_stream_to_bytes,
    stream_to_list,
)

__all__ = [
    "Body",
    "BodyEncoding",
    "RequestSpec",
    "ResponseBuffer",
    "ResponseOptions",
    "TransportOptions",
    "RequestBuilder",
    "request",
    "BufferState",
    "Executor",
    "ResponseAccumulator",
    "send",
    "HTTP11Connection",
    "ConnectionState",
    "HTTPRequestError",
    "TransportError",
    "ProtocolError",
    "UnsupportedProtocol",
    "StreamError",
    "AbortedByPeer",
    "BufferLimitExceeded",
    "TimeoutExceeded",
    "RequestAlreadySent",
    "StreamInterface",
    "ResponseStream",
    "DecompressingStream",
    "read_stream_to_bytes",
    "stream_to_list",
]
