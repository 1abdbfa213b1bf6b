"""Tests for the shared httpx client lifecycle and pool settings."""

import httpx
import pytest

from romshelf.api.connection_pool import ConnectionPoolManager


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_client_reuses_single_client():
    manager = ConnectionPoolManager({'settings': {'concurrency': 3}})

    first = await manager.get_client()
    second = await manager.get_client()

    assert first is second
    assert first.follow_redirects

    await manager.close_client()
    assert first.is_closed
    assert manager.client is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_request_timeout_applied():
    manager = ConnectionPoolManager({'api': {'request_timeout': 30}})

    client = manager.create_client()
    try:
        assert client.timeout.read == 30
        assert client.timeout.connect == 10.0
    finally:
        await client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unset_timeout_keeps_httpx_default():
    manager = ConnectionPoolManager({})

    client = manager.create_client()
    try:
        assert client.timeout == httpx.Timeout(5.0)
    finally:
        await client.aclose()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_without_client_is_noop():
    manager = ConnectionPoolManager({})

    await manager.close_client()

    assert manager.client is None
