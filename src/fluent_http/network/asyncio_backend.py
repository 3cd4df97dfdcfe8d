"""
Network backend built on asyncio streams.
"""

import asyncio
import logging
import ssl
from typing import Any, Optional

from .backend import NetworkBackend
from .stream import NetworkStream

logger = logging.getLogger(__name__)


class AsyncioNetworkStream(NetworkStream):
    """NetworkStream over an ``asyncio.StreamReader``/``StreamWriter`` pair."""
    
    DEFAULT_READ_SIZE = 65536
    
    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False
    
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            return b""
        return await self._reader.read(max_bytes or self.DEFAULT_READ_SIZE)
    
    async def write(self, data: bytes) -> None:
        if self._closed:
            raise BrokenPipeError("Stream is closed")
        self._writer.write(data)
        await self._writer.drain()
    
    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (OSError, ssl.SSLError) as e:
            logger.debug(f"Error while closing stream: {e}")
    
    def get_extra_info(self, name: str) -> Any:
        return self._writer.get_extra_info(name)
    
    @property
    def is_closed(self) -> bool:
        return self._closed


class AsyncioNetworkBackend(NetworkBackend):
    """
    Default backend: ``asyncio.open_connection`` for TCP and TLS.
    
    Extra keyword arguments (``local_addr``, ``family``, ...) are passed
    straight to ``asyncio.open_connection``.
    """
    
    async def connect_tcp(
        self, 
        host: str, 
        port: int, 
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> AsyncioNetworkStream:
        return await self._open(host, port, timeout, **kwargs)
    
    async def connect_tls(
        self,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext,
        server_hostname: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> AsyncioNetworkStream:
        return await self._open(
            host,
            port,
            timeout,
            ssl=ssl_context,
            server_hostname=server_hostname or host,
            **kwargs,
        )
    
    async def _open(
        self,
        host: str,
        port: int,
        timeout: Optional[float],
        **kwargs: Any,
    ) -> AsyncioNetworkStream:
        coro = asyncio.open_connection(host, port, **kwargs)
        if timeout:
            reader, writer = await asyncio.wait_for(coro, timeout=timeout)
        else:
            reader, writer = await coro
        
        logger.debug(f"Connected to {host}:{port} (tls={'ssl' in kwargs})")
        return AsyncioNetworkStream(reader, writer)
