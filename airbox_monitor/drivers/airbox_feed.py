from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import FeedUnavailable, ShapeMismatch

logger = logging.getLogger(__name__)


class AirboxFeedClient:
    """Client for the AirBox batch snapshot endpoint."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._base_url, params={"token": self._token})
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            # str(e) would echo the URL, token included
            raise FeedUnavailable(f"AirBox feed answered HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FeedUnavailable(f"AirBox feed request failed: {type(e).__name__}: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise ShapeMismatch(f"AirBox feed returned a non-JSON body ({len(resp.content)} bytes)") from e
