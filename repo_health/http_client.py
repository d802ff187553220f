"""Shared HTTP client handling."""

import httpx

from repo_health.config import get_verify_ssl

DEFAULT_TIMEOUT = 30.0


def create_async_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create an async HTTP client with connection pooling.

    The SSL verification setting is read when the client is created; the
    caller owns the client and must close it.
    """
    return httpx.AsyncClient(
        verify=get_verify_ssl(),
        timeout=timeout,
        follow_redirects=True,
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
            keepalive_expiry=30.0,
        ),
    )
