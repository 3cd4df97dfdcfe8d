"""
Network stream interface for fluent_http.

A NetworkStream is one open TCP or TLS connection. The HTTP/1.1 layer
only ever reads, writes and closes it.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for network streams with async I/O operations.
    
    Implementations report peer EOF as an empty read and surface
    socket failures as ``OSError``.
    """
    
    @abstractmethod
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the stream.
        
        Args:
            max_bytes: Maximum number of bytes to read.
        
        Returns:
            The data read, or ``b""`` once the peer has closed its side.
        
        Raises:
            OSError: If a network error occurs.
        """
    
    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the stream and wait until it is flushed.
        
        Raises:
            OSError: If a network error occurs.
        """
    
    @abstractmethod
    async def aclose(self) -> None:
        """
        Close the stream.
        
        Closing aborts any operation still pending on the connection.
        Calling it more than once is a no-op.
        """
    
    @abstractmethod
    def get_extra_info(self, name: str) -> Any:
        """
        Get extra information about the stream.
        
        Args:
            name: Transport info key, e.g. "peername", "sockname",
                 "ssl_object".
        
        Returns:
            The requested information or None if not available.
        """
    
    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """Check if the stream is closed."""
