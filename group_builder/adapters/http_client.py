# group_builder/adapters/http_client.py
"""
Shared plumbing for the JSON-over-HTTP collaborators.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from group_builder.config.settings import settings

logger = logging.getLogger(__name__)


class JsonServiceClient:
    """
    Thin wrapper around httpx.AsyncClient.

    When no client is injected a short-lived one is opened per request, which
    keeps the adapters usable outside of an application lifespan.
    """

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def get_json(self, path: str, params: Optional[dict] = None) -> Any:
        async with self._session() as client:
            resp = await client.get(f"{self.base_url}{path}", params=params)
            resp.raise_for_status()
            return resp.json()

    async def post_json(self, path: str, payload: Any) -> Any:
        async with self._session() as client:
            resp = await client.post(f"{self.base_url}{path}", json=payload)
            resp.raise_for_status()
            return resp.json()
