"""
HTTP connection pooling shared by the IGDB client and image downloads
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ConnectionPoolManager:
    """
    Owns the single httpx.AsyncClient used for a run

    The pool is sized from the configured concurrency (plus one connection
    for the token endpoint). With api.request_timeout unset, httpx's
    default timeouts apply.

    Example:
        manager = ConnectionPoolManager(config)
        client = await manager.get_client()
        try:
            ...
        finally:
            await manager.close_client()
    """

    def __init__(self, config: dict):
        """
        Initialize connection pool manager

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.client: Optional[httpx.AsyncClient] = None
        self.lock = asyncio.Lock()

    def create_client(self, max_connections: Optional[int] = None) -> httpx.AsyncClient:
        """
        Create httpx async client with connection pooling

        Args:
            max_connections: Maximum number of connections in pool
                (default: settings.concurrency + 1)

        Returns:
            Configured httpx.AsyncClient
        """
        if max_connections is None:
            concurrency = self.config.get('settings', {}).get('concurrency', 2)
            max_connections = concurrency + 1

        limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_connections,
            keepalive_expiry=90.0,
        )
        kwargs = {'limits': limits, 'follow_redirects': True}

        timeout = self.config.get('api', {}).get('request_timeout')
        if timeout is not None:
            kwargs['timeout'] = httpx.Timeout(timeout, connect=min(timeout, 10.0))

        logger.debug(
            f"Connection pool: max_connections={max_connections}, "
            f"timeout={timeout if timeout is not None else 'default'}"
        )

        return httpx.AsyncClient(**kwargs)

    async def get_client(self) -> httpx.AsyncClient:
        """
        Get or create the shared async client (async-safe)

        Returns:
            Shared httpx.AsyncClient
        """
        async with self.lock:
            if self.client is None or self.client.is_closed:
                self.client = self.create_client()
            return self.client

    async def close_client(self) -> None:
        """Close client and release connections"""
        async with self.lock:
            if self.client and not self.client.is_closed:
                logger.debug("Closing connection pool...")
                await self.client.aclose()
            self.client = None
