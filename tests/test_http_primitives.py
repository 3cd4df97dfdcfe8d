"""
Unit tests for HTTP primitives.

Tests Body, RequestSpec, TransportOptions and ResponseBuffer.
"""

import json
from urllib.parse import urlparse, urlsplit

import pytest

from fluent_http.http_primitives import (
    Body,
    BodyEncoding,
    RequestSpec,
    ResponseBuffer,
    ResponseOptions,
    TransportOptions,
    headers_to_dict,
    parse_url,
)


class TestParseURL:
    """Test URL normalization."""

    def test_from_string(self) -> None:
        """Test parsing a URL string."""
        url = parse_url("https://example.com:8443/a?b=1")
        assert url.scheme == "https"
        assert url.hostname == "example.com"
        assert url.port == 8443
        assert url.path == "/a"
        assert url.query == "b=1"

    def test_from_split_result(self) -> None:
        """Test a SplitResult passes through unchanged."""
        url = urlsplit("http://example.com/a")
        assert parse_url(url) is url

    def test_from_parse_result(self) -> None:
        """Test a ParseResult is converted."""
        url = parse_url(urlparse("http://example.com/a;v=1?q=2"))
        assert url.path == "/a;v=1"
        assert url.query == "q=2"

    def test_invalid_type(self) -> None:
        """Test other types are rejected."""
        with pytest.raises(ValueError):
            parse_url(42)


class TestBody:
    """Test Body creation and encoding inference."""

    def test_structured_value_is_json(self) -> None:
        """Test a dict without a hint is encoded as JSON."""
        body = Body.create({"a": 1})
        assert body.encoding is BodyEncoding.JSON
        assert body.content == b'{"a":1}'
        assert body.encoding.content_type == "application/json"

    def test_list_is_json(self) -> None:
        """Test a list without a hint is encoded as JSON."""
        body = Body.create([1, 2, 3])
        assert body.encoding is BodyEncoding.JSON
        assert json.loads(body.content) == [1, 2, 3]

    def test_bytes_pass_through(self) -> None:
        """Test raw bytes are kept unchanged."""
        data = b"\x00\x01binary\xff"
        body = Body.create(data)
        assert body.encoding is BodyEncoding.BUFFER
        assert body.content == data
        assert body.encoding.content_type is None

    def test_bytearray_pass_through(self) -> None:
        """Test a bytearray is converted to bytes."""
        body = Body.create(bytearray(b"abc"))
        assert body.content == b"abc"

    def test_text_is_buffer(self) -> None:
        """Test plain text is sent as UTF-8 bytes."""
        body = Body.create("héllo")
        assert body.encoding is BodyEncoding.BUFFER
        assert body.content == "héllo".encode("utf-8")

    def test_explicit_form(self) -> None:
        """Test form encoding with repeated keys."""
        body = Body.create({"a": 1, "b": ["x", "y"]}, "form")
        assert body.encoding is BodyEncoding.FORM
        assert body.content == b"a=1&b=x&b=y"
        assert body.encoding.content_type == "application/x-www-form-urlencoded"

    def test_explicit_encoding_is_case_insensitive(self) -> None:
        """Test encoding hints ignore case."""
        assert Body.create({"a": 1}, "JSON").encoding is BodyEncoding.JSON
        assert Body.create({"a": 1}, BodyEncoding.FORM).encoding is BodyEncoding.FORM

    def test_explicit_json_for_text(self) -> None:
        """Test a string can be forced to JSON."""
        body = Body.create("hi", "json")
        assert body.content == b'"hi"'

    @pytest.mark.parametrize("data", ["a=b", 42, [1, 2]])
    def test_form_requires_pairs(self, data) -> None:
        """Test form encoding rejects data that isn't key/value pairs."""
        with pytest.raises(ValueError, match="form body requires"):
            Body.create(data, "form")

    def test_form_from_pairs(self) -> None:
        """Test form encoding accepts a sequence of pairs."""
        assert Body.create([("a", "1"), ("a", "2")], "form").content == b"a=1&a=2"

    def test_unknown_encoding(self) -> None:
        """Test unknown encodings are rejected."""
        with pytest.raises(ValueError, match="Unknown body encoding"):
            Body.create({"a": 1}, "xml")

    def test_body_instance_passes_through(self) -> None:
        """Test an existing Body is not re-encoded."""
        body = Body.raw(b"x")
        assert Body.create(body) is body

    def test_length(self) -> None:
        """Test len() reports wire bytes."""
        assert len(Body.create({"k": "é"})) == len('{"k":"é"}'.encode("utf-8"))

    def test_content_must_be_bytes(self) -> None:
        """Test validation in __post_init__."""
        with pytest.raises(ValueError):
            Body(BodyEncoding.BUFFER, "text")


class TestRequestSpec:
    """Test RequestSpec class functionality."""

    def test_defaults(self) -> None:
        """Test default values."""
        spec = RequestSpec(url=urlsplit("http://example.com"))
        assert spec.method == "GET"
        assert dict(spec.headers) == {}
        assert spec.body is None
        assert spec.stream is False
        assert spec.compress is False
        assert spec.timeout is None
        assert spec.response_options.max_buffer == 50_000_000

    def test_url_properties(self) -> None:
        """Test derived URL properties."""
        spec = RequestSpec(url=urlsplit("https://example.com/a/b?x=1"))
        assert spec.scheme == "https"
        assert spec.host == "example.com"
        assert spec.port == 443
        assert spec.target == "/a/b?x=1"

    def test_empty_path_target(self) -> None:
        """Test an empty path becomes '/'."""
        spec = RequestSpec(url=urlsplit("http://example.com"))
        assert spec.target == "/"
        assert spec.port == 80

    def test_immutable(self) -> None:
        """Test that the spec cannot be modified."""
        spec = RequestSpec(url=urlsplit("http://example.com"), headers={"a": "1"})
        with pytest.raises(AttributeError):
            spec.method = "POST"
        with pytest.raises(TypeError):
            spec.headers["b"] = "2"

    def test_snapshot_does_not_follow_source_dict(self) -> None:
        """Test headers are copied at construction."""
        headers = {"a": "1"}
        spec = RequestSpec(url=urlsplit("http://example.com"), headers=headers)
        headers["a"] = "2"
        assert spec.headers["a"] == "1"

    def test_header_names_must_be_lower_case(self) -> None:
        """Test validation of header names."""
        with pytest.raises(ValueError, match="lower-cased"):
            RequestSpec(url=urlsplit("http://example.com"), headers={"Accept": "*/*"})

    def test_negative_timeout(self) -> None:
        """Test validation of timeout."""
        with pytest.raises(ValueError):
            RequestSpec(url=urlsplit("http://example.com"), timeout=-1)

    @pytest.mark.parametrize("timeout,expected", [(None, False), (0, False), (0.5, True)])
    def test_has_timeout(self, timeout, expected) -> None:
        """Test zero and None both mean no timeout."""
        spec = RequestSpec(url=urlsplit("http://example.com"), timeout=timeout)
        assert spec.has_timeout is expected

    def test_with_headers(self) -> None:
        """Test creating a copy with different headers."""
        spec = RequestSpec(url=urlsplit("http://example.com"))
        new_spec = spec.with_headers({"x": "1"})
        assert dict(new_spec.headers) == {"x": "1"}
        assert dict(spec.headers) == {}


class TestResponseOptions:
    """Test ResponseOptions validation."""

    def test_default(self) -> None:
        """Test the default limit."""
        assert ResponseOptions().max_buffer == 50 * 1000000

    def test_none_disables(self) -> None:
        """Test None is accepted."""
        assert ResponseOptions(max_buffer=None).max_buffer is None

    def test_negative(self) -> None:
        """Test negative limits are rejected."""
        with pytest.raises(ValueError):
            ResponseOptions(max_buffer=-1)


class TestTransportOptions:
    """Test merging computed options with overrides."""

    @pytest.fixture
    def computed(self):
        return {
            "protocol": "http",
            "host": "example.com",
            "port": 80,
            "path": "/",
            "method": "GET",
            "headers": {"host": "example.com"},
        }

    def test_no_overrides(self, computed) -> None:
        """Test computed options pass through."""
        options = TransportOptions.merge(computed, {})
        assert options.host == "example.com"
        assert options.port == 80
        assert dict(options.extra) == {}

    def test_override_wins(self, computed) -> None:
        """Test overrides take precedence."""
        options = TransportOptions.merge(computed, {"port": "8080", "path": "/other"})
        assert options.port == 8080
        assert options.path == "/other"

    def test_unknown_keys_go_to_extra(self, computed) -> None:
        """Test unrecognized overrides are kept for the backend."""
        options = TransportOptions.merge(computed, {"local_addr": ("0.0.0.0", 0)})
        assert options.extra == {"local_addr": ("0.0.0.0", 0)}

    def test_protocol_normalized(self, computed) -> None:
        """Test a trailing colon in the protocol is dropped."""
        options = TransportOptions.merge(computed, {"protocol": "HTTPS:"})
        assert options.protocol == "https"


class TestResponseBuffer:
    """Test ResponseBuffer class functionality."""

    def test_create(self) -> None:
        """Test creating from a response head."""
        response = ResponseBuffer.create(
            200, b"OK", [(b"content-type", b"text/plain"), (b"x-a", b"1")]
        )
        assert response.status_code == 200
        assert response.reason_phrase == "OK"
        assert response.headers == {"content-type": "text/plain", "x-a": "1"}
        assert response.body == b""
        assert response.ok

    def test_chunks_append_in_order(self) -> None:
        """Test the body grows by ordered appends."""
        response = ResponseBuffer.create(200)
        for chunk in (b"Hello", b", ", b"World"):
            response._add_chunk(chunk)
        assert response.body == b"Hello, World"
        assert response.body_length == 12

    def test_get_header_case_insensitive(self) -> None:
        """Test header lookup ignores case."""
        response = ResponseBuffer.create(200, "OK", [(b"Content-Type", b"text/plain")])
        assert response.get_header("CONTENT-TYPE") == "text/plain"
        assert response.get_header("missing") is None

    def test_text_uses_charset(self) -> None:
        """Test text decoding honours the declared charset."""
        response = ResponseBuffer.create(
            200, "OK", [(b"content-type", b"text/plain; charset=latin-1")]
        )
        response._add_chunk("café".encode("latin-1"))
        assert response.charset == "latin-1"
        assert response.text() == "café"

    def test_json(self) -> None:
        """Test JSON decoding."""
        response = ResponseBuffer.create(200)
        response._add_chunk(b'{"a": [1, 2]}')
        assert response.json() == {"a": [1, 2]}

    def test_not_ok(self) -> None:
        """Test non-2xx statuses."""
        assert not ResponseBuffer.create(404, "Not Found").ok


class TestHeadersToDict:
    """Test header collapsing."""

    def test_repeated_headers_joined(self) -> None:
        """Test repeated headers are joined in order."""
        headers = [(b"Vary", b"Accept"), (b"vary", b"Origin")]
        assert headers_to_dict(headers) == {"vary": "Accept, Origin"}
