"""
Streaming responses with fluent_http.

The request resolves as soon as the response head arrives; the body
is pulled chunk by chunk and decoded on the fly.
"""

import asyncio
import logging

from fluent_http import TimeoutExceeded, request

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def stream_large_body():
    """Stream a body without buffering it."""
    stream = await (
        request("http://httpbin.org/stream-bytes/65536")
        .set_query("chunk_size", 4096)
        .enable_streaming()
        .send()
    )

    total = 0
    async with stream:
        async for chunk in stream:
            total += len(chunk)
            logger.info(f"Received chunk of {len(chunk)} bytes ({total} total)")

    logger.info(f"Stream finished with status {stream.status_code}")


async def stream_compressed_body():
    """Stream a gzip body, decoded transparently."""
    stream = await (
        request("http://httpbin.org/gzip")
        .enable_compression()
        .enable_streaming()
        .send()
    )
    body = await stream.aread()
    logger.info(f"Decoded {len(body)} bytes")


async def stream_with_timeout():
    """The timeout keeps running while the body is read."""
    try:
        stream = await (
            request("http://httpbin.org/drip")
            .set_query({"duration": 5, "numbytes": 5})
            .set_timeout(2)
            .enable_streaming()
            .send()
        )
        async for chunk in stream:
            logger.info(f"Dripped {chunk!r}")
    except TimeoutExceeded as e:
        logger.info(f"Stream timed out: {e}")


async def main():
    """Run all examples."""
    await stream_large_body()
    await stream_compressed_body()
    await stream_with_timeout()


if __name__ == "__main__":
    asyncio.run(main())
