"""
Pytest configuration for fluent_http tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import gzip
import zlib
from typing import List, Optional, Tuple

import pytest

from fluent_http.executor import Executor
from fluent_http.network.mock import MockNetworkBackend


def _build_response(
    body: bytes = b"",
    status: int = 200,
    reason: str = "OK",
    headers: Optional[List[Tuple[str, str]]] = None,
    chunked: bool = False,
    content_length: Optional[int] = None,
) -> bytes:
    """Serialize an HTTP/1.1 response."""
    header_list = list(headers or [])
    if chunked:
        header_list.append(("Transfer-Encoding", "chunked"))
        payload = b"".join(
            f"{len(part):x}\r\n".encode() + part + b"\r\n"
            for part in (body[i:i + 5] for i in range(0, len(body), 5))
        ) + b"0\r\n\r\n"
    else:
        length = len(body) if content_length is None else content_length
        header_list.append(("Content-Length", str(length)))
        payload = body

    head = f"HTTP/1.1 {status} {reason}\r\n"
    head += "".join(f"{name}: {value}\r\n" for name, value in header_list)
    return head.encode("latin-1") + b"\r\n" + payload


@pytest.fixture
def http_response():
    """Factory producing raw HTTP/1.1 response bytes."""
    return _build_response


@pytest.fixture
def mock_backend():
    """Create a mock network backend."""
    return MockNetworkBackend()


@pytest.fixture
def executor(mock_backend):
    """Create an executor that talks to the mock backend."""
    return Executor(backend=mock_backend)


@pytest.fixture
def sample_payload():
    """Sample plaintext payload for compression tests."""
    return b"The quick brown fox jumps over the lazy dog. " * 200


@pytest.fixture
def gzip_payload(sample_payload):
    """The sample payload, gzip-compressed."""
    return gzip.compress(sample_payload)


@pytest.fixture
def deflate_payload(sample_payload):
    """The sample payload, zlib-wrapped deflate."""
    return zlib.compress(sample_payload)


@pytest.fixture
def raw_deflate_payload(sample_payload):
    """The sample payload, raw deflate without zlib header."""
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(sample_payload) + compressor.flush()


@pytest.fixture
def sample_headers():
    """Sample headers for testing."""
    return {
        "Content-Type": "application/json",
        "Authorization": "Bearer token123",
        "User-Agent": "fluent_http/0.1.0",
        "Accept": "*/*",
    }
