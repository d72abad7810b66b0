"""Shared outbound HTTP client dependency"""
from typing import AsyncIterator

import httpx


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Request-scoped httpx client, closed when the request finishes"""
    async with httpx.AsyncClient(timeout=10.0) as client:
        yield client
