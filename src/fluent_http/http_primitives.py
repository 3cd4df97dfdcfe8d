"""
HTTP primitives for fluent_http.

This module defines the data structures passed between the request
builder and the executor: the tagged request body, the frozen request
snapshot, the typed transport options and the buffered response.
"""

import dataclasses
import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)
from urllib.parse import ParseResult, SplitResult, urlencode, urlsplit


# Type aliases for better readability
Headers = List[Tuple[bytes, bytes]]
URLInput = Union[str, SplitResult, ParseResult]
StatusCode = int

SUPPORTED_SCHEMES = ("http", "https")
SUPPORTED_COMPRESSIONS = ("gzip", "deflate")
DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_url(url: URLInput) -> SplitResult:
    """
    Normalize a URL string or pre-parsed URL into a SplitResult.

    Args:
        url: URL string, SplitResult or ParseResult

    Returns:
        The URL split into its components
    """
    if isinstance(url, SplitResult):
        return url
    if isinstance(url, ParseResult):
        path = url.path + (";" + url.params if url.params else "")
        return SplitResult(url.scheme, url.netloc, path, url.query, url.fragment)
    if isinstance(url, str):
        return urlsplit(url)
    raise ValueError("url must be a string, SplitResult or ParseResult")


class BodyEncoding(str, Enum):
    """Wire encodings a request body can be sent with."""
    BUFFER = "buffer"
    JSON = "json"
    FORM = "form"

    @property
    def content_type(self) -> Optional[str]:
        """Content type implied by the encoding, if any."""
        return _CONTENT_TYPES.get(self)


_CONTENT_TYPES = {
    BodyEncoding.JSON: "application/json",
    BodyEncoding.FORM: "application/x-www-form-urlencoded",
}


@dataclass(frozen=True)
class Body:
    """
    Request body already transformed into its wire representation.

    The encoding is decided once, when the body is created, and the
    content is never re-inspected afterwards.
    """

    encoding: BodyEncoding
    content: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.encoding, BodyEncoding):
            raise ValueError("encoding must be a BodyEncoding")
        if not isinstance(self.content, bytes):
            raise ValueError("content must be bytes")

    @classmethod
    def json(cls, value: Any) -> "Body":
        """Serialize a structured value as compact JSON."""
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        return cls(BodyEncoding.JSON, text.encode("utf-8"))

    @classmethod
    def form(cls, data: Union[Mapping[str, Any], List[Tuple[str, Any]]]) -> "Body":
        """URL-encode key/value pairs; sequence values repeat their key."""
        try:
            encoded = urlencode(data, doseq=True)
        except TypeError as e:
            raise ValueError(
                "form body requires a mapping or a sequence of key/value pairs"
            ) from e
        return cls(BodyEncoding.FORM, encoded.encode("ascii"))

    @classmethod
    def raw(cls, data: Union[bytes, bytearray, memoryview, str]) -> "Body":
        """Pass bytes through unchanged; text is encoded as UTF-8."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(BodyEncoding.BUFFER, bytes(data))

    @classmethod
    def create(cls, data: Any, encoding: Union[str, BodyEncoding, None] = None) -> "Body":
        """
        Build a body, inferring the encoding when none is given.

        Args:
            data: The payload
            encoding: Optional explicit encoding ("json", "form" or "buffer")

        Returns:
            New Body instance
        """
        if isinstance(data, Body):
            return data

        if encoding is None:
            if isinstance(data, (bytes, bytearray, memoryview, str)):
                encoding = BodyEncoding.BUFFER
            else:
                encoding = BodyEncoding.JSON
        elif not isinstance(encoding, BodyEncoding):
            try:
                encoding = BodyEncoding(encoding.lower())
            except ValueError:
                raise ValueError(f"Unknown body encoding: {encoding!r}") from None

        if encoding is BodyEncoding.JSON:
            return cls.json(data)
        if encoding is BodyEncoding.FORM:
            return cls.form(data)
        return cls.raw(data)

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ResponseOptions:
    """Response buffering configuration."""

    DEFAULT_MAX_BUFFER = 50 * 1000000  # 50 MB

    max_buffer: Optional[int] = DEFAULT_MAX_BUFFER

    def __post_init__(self) -> None:
        if self.max_buffer is not None and self.max_buffer < 0:
            raise ValueError("max_buffer must be non-negative or None")


@dataclass(frozen=True)
class TransportOptions:
    """
    Options handed to the network backend for one request.

    Recognized knobs are typed fields; anything else supplied as a raw
    override lands in ``extra`` and is forwarded to the backend untouched.
    """

    protocol: str
    host: str
    port: int
    path: str
    method: str
    headers: Mapping[str, str]
    ssl_context: Any = None
    server_hostname: Optional[str] = None
    connect_timeout: Optional[float] = None
    read_size: Optional[int] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def merge(cls, computed: Dict[str, Any], overrides: Mapping[str, Any]) -> "TransportOptions":
        """
        Merge raw overrides over computed options.

        Args:
            computed: Options derived from the request
            overrides: Raw overrides; these win on key collision

        Returns:
            New TransportOptions instance
        """
        known = {f.name for f in dataclasses.fields(cls)} - {"extra"}
        merged = dict(computed)
        extra: Dict[str, Any] = {}
        for name, value in overrides.items():
            if name in known:
                merged[name] = value
            else:
                extra[name] = value
        merged["port"] = int(merged["port"])
        merged["protocol"] = str(merged["protocol"]).rstrip(":").lower()
        return cls(extra=extra, **merged)


@dataclass(frozen=True)
class RequestSpec:
    """
    Immutable description of a single HTTP request.

    Instances are produced by ``RequestBuilder.build`` and consumed once
    by the executor. Header names are stored lower-cased.
    """

    url: SplitResult
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Body] = None
    stream: bool = False
    compress: bool = False
    timeout: Optional[float] = None
    options: Mapping[str, Any] = field(default_factory=dict)
    response_options: ResponseOptions = field(default_factory=ResponseOptions)

    def __post_init__(self) -> None:
        """Validate and freeze request data after initialization."""
        if not isinstance(self.url, SplitResult):
            raise ValueError("url must be a SplitResult")

        if not isinstance(self.method, str) or not self.method:
            raise ValueError("method must be a non-empty string")

        for name in self.headers:
            if name != name.lower():
                raise ValueError(f"header name {name!r} must be lower-cased")

        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout must be non-negative")

        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    def with_headers(self, headers: Mapping[str, str]) -> "RequestSpec":
        """Create a new spec with different headers."""
        return dataclasses.replace(self, headers=headers)

    @property
    def scheme(self) -> str:
        """Get the URL scheme."""
        return self.url.scheme.lower()

    @property
    def host(self) -> str:
        """Get the URL host."""
        return self.url.hostname or ""

    @property
    def port(self) -> int:
        """Get the URL port, falling back to the scheme default."""
        return self.url.port or DEFAULT_PORTS.get(self.scheme, 80)

    @property
    def target(self) -> str:
        """Get the request target (path plus query string)."""
        path = self.url.path or "/"
        return f"{path}?{self.url.query}" if self.url.query else path

    @property
    def has_timeout(self) -> bool:
        """Whether a non-zero timeout was configured."""
        return bool(self.timeout)


@dataclass
class ResponseBuffer:
    """
    Fully buffered HTTP response.

    Created when the response head arrives; the body grows by ordered
    appends until the response ends.
    """

    status_code: StatusCode
    reason_phrase: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    raw_headers: Headers = field(default_factory=list)
    _body: bytearray = field(default_factory=bytearray, repr=False)

    @classmethod
    def create(
        cls,
        status_code: StatusCode,
        reason_phrase: Union[str, bytes] = "",
        headers: Optional[Headers] = None,
    ) -> "ResponseBuffer":
        """
        Create a ResponseBuffer from a response head.

        Args:
            status_code: HTTP status code
            reason_phrase: Status message
            headers: List of (name, value) header tuples as received

        Returns:
            New ResponseBuffer with an empty body
        """
        if isinstance(reason_phrase, bytes):
            reason_phrase = reason_phrase.decode("latin-1")
        raw_headers = list(headers or [])
        return cls(
            status_code=status_code,
            reason_phrase=reason_phrase,
            headers=headers_to_dict(raw_headers),
            raw_headers=raw_headers,
        )

    def _add_chunk(self, chunk: bytes) -> None:
        self._body.extend(chunk)

    @property
    def body(self) -> bytes:
        """Get the accumulated body."""
        return bytes(self._body)

    @property
    def body_length(self) -> int:
        """Get the number of body bytes accumulated so far."""
        return len(self._body)

    @property
    def ok(self) -> bool:
        """Whether the status code is in the 2xx range."""
        return 200 <= self.status_code < 300

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        return self.headers.get(name.lower(), default)

    @property
    def charset(self) -> Optional[str]:
        """Charset declared in the content-type header, if any."""
        content_type = self.get_header("content-type") or ""
        for param in content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
        return None

    def text(self, encoding: Optional[str] = None) -> str:
        """Decode the body as text."""
        return self.body.decode(encoding or self.charset or "utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.text())


def headers_to_dict(headers: Headers) -> Dict[str, str]:
    """
    Collapse raw header tuples into a lower-cased mapping.

    Repeated headers are joined with ", " in the order received.
    """
    result: Dict[str, str] = {}
    for name, value in headers:
        key = name.decode("latin-1").lower()
        text = value.decode("latin-1")
        result[key] = f"{result[key]}, {text}" if key in result else text
    return result
