"""
Fluent request builder for fluent_http.

RequestBuilder accumulates request configuration through chainable
setters and freezes it into a RequestSpec. Nothing here performs I/O
until ``send`` is awaited.

Example:
    response = await (
        RequestBuilder("https://api.example.com/v1", "POST")
        .append_path("items")
        .set_query("page", 2)
        .set_body({"name": "widget"})
        .enable_compression()
        .set_timeout(5)
        .send()
    )
"""

import posixpath
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

from typing_extensions import Self

from .exceptions import RequestAlreadySent
from .http_primitives import (
    SUPPORTED_COMPRESSIONS,
    Body,
    BodyEncoding,
    RequestSpec,
    ResponseOptions,
    URLInput,
    parse_url,
)
from .executor import Executor, SendResult, send as _send


def join_path(base: str, segment: str) -> str:
    """
    Join ``segment`` onto ``base`` and normalize the result.

    ``.``/``..`` and redundant separators are resolved; a trailing slash
    on the segment is kept. The segment is not URL-encoded.
    """
    joined = posixpath.normpath(f"{base or '/'}/{segment}")
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    if segment.endswith("/") and joined != "/":
        joined += "/"
    return joined


class RequestBuilder:
    """
    Accumulates the configuration of a single HTTP request.

    Every setter returns the builder itself so calls can be chained.
    Header names are case-insensitive and the last value set wins.
    """

    def __init__(self, url: URLInput, method: str = "GET") -> None:
        """
        Initialize the builder.

        Args:
            url: Target URL string or pre-parsed URL
            method: HTTP method
        """
        self._url = parse_url(url)
        self._method = method.upper()
        self._headers: Dict[str, str] = {}
        self._body: Optional[Body] = None
        self._stream = False
        self._compress = False
        self._timeout: Optional[float] = None
        self._options: Dict[str, Any] = {}
        self._max_buffer: Optional[int] = ResponseOptions.DEFAULT_MAX_BUFFER
        self._sent = False

    def set_query(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> Self:
        """
        Append query parameters.

        Existing parameters with the same name are kept; sequence values
        in a mapping append one parameter per item.
        """
        if isinstance(key, Mapping):
            encoded = urlencode(list(key.items()), doseq=True)
        else:
            encoded = urlencode([(key, value)])

        if encoded:
            query = f"{self._url.query}&{encoded}" if self._url.query else encoded
            self._url = self._url._replace(query=query)
        return self

    def append_path(self, segment: str) -> Self:
        """Join a path segment onto the current URL path."""
        self._url = self._url._replace(path=join_path(self._url.path, segment))
        return self

    def set_body(self, data: Any, encoding: Union[str, BodyEncoding, None] = None) -> Self:
        """
        Set the request body.

        Without an explicit encoding, bytes and text are sent as-is and
        any other value is serialized as JSON. Form data must be a
        mapping or a sequence of key/value pairs.

        Args:
            data: Payload, or a ready-made Body
            encoding: "json", "form" or "buffer"
        """
        self._body = Body.create(data, encoding)
        return self

    def set_header(self, name: Union[str, Mapping[str, Any]], value: Any = None) -> Self:
        """Set one header, or several from a mapping."""
        items = name.items() if isinstance(name, Mapping) else [(name, value)]
        for header_name, header_value in items:
            self._headers[header_name.lower()] = str(header_value)
        return self

    def set_timeout(self, timeout: Optional[float]) -> Self:
        """Set the request timeout in seconds; None or 0 disables it."""
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")
        self._timeout = timeout
        return self

    def set_transport_option(self, name: str, value: Any) -> Self:
        """Override a transport option; it wins over computed options."""
        self._options[name] = value
        return self

    def set_max_buffer(self, max_buffer: Optional[int]) -> Self:
        """Set the largest body accepted in buffered mode; None disables the limit."""
        if max_buffer is not None and max_buffer < 0:
            raise ValueError("max_buffer must be non-negative or None")
        self._max_buffer = max_buffer
        return self

    def enable_streaming(self) -> Self:
        """Resolve with a live response stream instead of a buffered response."""
        self._stream = True
        return self

    def enable_compression(self) -> Self:
        """Negotiate gzip/deflate and decode the response transparently."""
        self._compress = True
        if "accept-encoding" not in self._headers:
            self._headers["accept-encoding"] = ", ".join(SUPPORTED_COMPRESSIONS)
        return self

    def build(self) -> RequestSpec:
        """Freeze the current configuration into a RequestSpec."""
        return RequestSpec(
            url=self._url,
            method=self._method,
            headers=self._headers,
            body=self._body,
            stream=self._stream,
            compress=self._compress,
            timeout=self._timeout,
            options=self._options,
            response_options=ResponseOptions(max_buffer=self._max_buffer),
        )

    async def send(self, executor: Optional[Executor] = None) -> SendResult:
        """
        Build and dispatch the request.

        A builder can only be sent once.

        Args:
            executor: Executor to use; defaults to the shared one

        Raises:
            RequestAlreadySent: If the builder was already sent
        """
        if self._sent:
            raise RequestAlreadySent()
        self._sent = True

        spec = self.build()
        if executor is not None:
            return await executor.send(spec)
        return await _send(spec)

    @property
    def url(self) -> str:
        """Get the URL as currently configured."""
        return self._url.geturl()

    @property
    def method(self) -> str:
        """Get the HTTP method."""
        return self._method

    @property
    def headers(self) -> Dict[str, str]:
        """Get a copy of the headers set so far."""
        return dict(self._headers)

    @property
    def body(self) -> Optional[Body]:
        """Get the encoded body, if any."""
        return self._body

    def __repr__(self) -> str:
        return f"<RequestBuilder [{self._method} {self.url}]>"


def request(url: URLInput, method: str = "GET") -> RequestBuilder:
    """Start building a request."""
    return RequestBuilder(url, method)
