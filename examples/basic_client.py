"""
Basic buffered requests with fluent_http.

This example builds a few requests with the fluent builder and
prints the buffered responses.
"""

import asyncio
import logging

from fluent_http import HTTPRequestError, request

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def simple_get_request():
    """Demonstrate a simple GET request."""
    logger.info("Making simple GET request...")

    response = await (
        request("http://httpbin.org")
        .append_path("get")
        .set_query("source", "fluent_http")
        .set_timeout(10)
        .send()
    )

    logger.info(f"Response status: {response.status_code} {response.reason_phrase}")
    logger.info(f"Response body length: {response.body_length} bytes")


async def post_json_request():
    """Demonstrate a POST request with a JSON body."""
    logger.info("Making POST request with body...")

    response = await (
        request("https://httpbin.org", "POST")
        .append_path("post")
        .set_header("X-Example", "basic")
        .set_body({"message": "Hello, World!"})
        .enable_compression()
        .send()
    )

    logger.info(f"Response status: {response.status_code}")
    logger.info(f"Echoed JSON: {response.json()['json']}")


async def bounded_request():
    """Demonstrate the response buffer limit."""
    logger.info("Requesting more than we are willing to buffer...")

    try:
        await request("http://httpbin.org/bytes/4096").set_max_buffer(1024).send()
    except HTTPRequestError as e:
        logger.info(f"Request failed as expected: {e}")


async def main():
    """Run all examples."""
    await simple_get_request()
    await post_json_request()
    await bounded_request()


if __name__ == "__main__":
    asyncio.run(main())
