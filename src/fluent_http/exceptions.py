"""
Custom exceptions for fluent_http.

Every failure of a request surfaces as one of the exceptions below,
raised from the awaited ``send`` call. The hierarchy mirrors the
failure kinds of the request pipeline so callers can tell a refused
connection from a peer that hung up halfway through a body.
"""

from typing import Optional


class HTTPRequestError(Exception):
    """Base exception for all fluent_http errors."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class TransportError(HTTPRequestError):
    """Raised on low-level connection, socket or TLS failures."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Transport error: {message}", cause)


class ProtocolError(HTTPRequestError):
    """Raised when the peer speaks malformed HTTP."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Protocol error: {message}", cause)


class UnsupportedProtocol(ProtocolError):
    """Raised when the URL scheme is neither http nor https."""
    
    def __init__(self, scheme: str) -> None:
        super().__init__(f"Bad URL protocol: {scheme!r}")
        self.scheme = scheme


class StreamError(HTTPRequestError):
    """Raised when there's an error with stream operations."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)


class AbortedByPeer(StreamError):
    """Raised when the server closes the connection before the response completed."""
    
    def __init__(self, message: str = "Server aborted request", cause: Optional[BaseException] = None) -> None:
        super().__init__(message, cause)


class BufferLimitExceeded(StreamError):
    """Raised when a buffered response body grows past the configured limit."""
    
    def __init__(self, limit: int, received: int) -> None:
        super().__init__(
            f"Received a response which was longer than acceptable when "
            f"buffering ({received} bytes, limit {limit})"
        )
        self.limit = limit
        self.received = received


class TimeoutExceeded(HTTPRequestError):
    """Raised when the request timeout fires before completion."""
    
    def __init__(self, message: str = "Timeout reached", timeout: Optional[float] = None) -> None:
        if timeout is not None:
            message = f"{message} (timeout: {timeout}s)"
        super().__init__(f"Timeout error: {message}")
        self.timeout = timeout


class RequestAlreadySent(HTTPRequestError):
    """Raised when a request builder is dispatched a second time."""
    
    def __init__(self, message: str = "Request has already been sent") -> None:
        super().__init__(message)
