"""
Network backend interface for fluent_http.

The backend turns a host and port into an open NetworkStream. Plain
HTTP uses ``connect_tcp``; HTTPS uses ``connect_tls``.
"""

import ssl
from abc import ABC, abstractmethod
from typing import Any, Optional

from .stream import NetworkStream


class NetworkBackend(ABC):
    """
    Interface for network backend implementations.
    
    Extra keyword arguments carry transport-specific knobs supplied as
    raw request options; backends that don't understand one may reject
    it with ``TypeError``.
    """
    
    @abstractmethod
    async def connect_tcp(
        self, 
        host: str, 
        port: int, 
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> NetworkStream:
        """
        Connect to a TCP endpoint.
        
        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.
            timeout: Optional timeout in seconds for the connection.
        
        Returns:
            A NetworkStream representing the TCP connection.
        
        Raises:
            OSError: If the connection fails.
            asyncio.TimeoutError: If the connection times out.
        """
    
    @abstractmethod
    async def connect_tls(
        self,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext,
        server_hostname: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> NetworkStream:
        """
        Connect to a TLS endpoint.
        
        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.
            ssl_context: Context used for the handshake.
            server_hostname: Name checked against the certificate;
                            defaults to ``host``.
            timeout: Optional timeout in seconds for connect plus handshake.
        
        Returns:
            A NetworkStream representing the TLS connection.
        
        Raises:
            OSError: If the connection or the TLS handshake fails.
            asyncio.TimeoutError: If the connection times out.
        """
