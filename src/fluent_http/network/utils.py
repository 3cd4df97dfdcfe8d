"""
Network utilities for fluent_http.

This module provides helpers shared by the executor and the backends:
SSL context setup, host header formatting and port validation.
"""

import socket
import ssl
from typing import List, Optional, Union


def create_ssl_context(
    alpn_protocols: Optional[List[str]] = None,
    verify: bool = True,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Create an SSL context for HTTPS requests.
    
    Args:
        alpn_protocols: Optional list of ALPN protocols to negotiate
        verify: Whether to verify the peer certificate and hostname
        cert_file: Path to certificate file (for client auth)
        key_file: Path to private key file (for client auth)
    
    Returns:
        Configured SSL context
    
    Raises:
        ssl.SSLError: If SSL context creation fails
    """
    context = ssl.create_default_context()
    
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    
    if alpn_protocols:
        context.set_alpn_protocols(alpn_protocols)
    
    # Content-Encoding handles compression; never compress at the TLS layer
    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    
    if cert_file and key_file:
        context.load_cert_chain(cert_file, key_file)
    
    return context


def is_ipv6_address(host: str) -> bool:
    """
    Check if a host string is an IPv6 address.
    
    Args:
        host: Host string to check
    
    Returns:
        True if the host is an IPv6 address
    """
    try:
        socket.inet_pton(socket.AF_INET6, host)
        return True
    except (OSError, ValueError):
        return False


def format_host_header(host: str, port: int, scheme: str) -> str:
    """
    Format host header for HTTP requests.
    
    The port is only included when it differs from the scheme default.
    IPv6 literals are wrapped in brackets.
    
    Args:
        host: Hostname
        port: Port number
        scheme: URL scheme
    
    Returns:
        Formatted host header string
    """
    if is_ipv6_address(host):
        host = f"[{host}]"
    if (scheme == "https" and port == 443) or (scheme == "http" and port == 80):
        return host
    return f"{host}:{port}"


def validate_port(port: Union[int, str]) -> int:
    """
    Validate and convert port to integer.
    
    Args:
        port: Port number (int or string)
    
    Returns:
        Port as integer
    
    Raises:
        ValueError: If port is invalid
    """
    try:
        port_int = int(port)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid port: {port}")
    
    if not (1 <= port_int <= 65535):
        raise ValueError(f"Port must be between 1 and 65535, got {port_int}")
    
    return port_int
