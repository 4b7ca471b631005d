from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, StrictStr, TypeAdapter, ValidationError

from .errors import DecodeError, NetworkError
from .models import Item

logger = logging.getLogger(__name__)


class FeedEntry(BaseModel):
    """Wire shape of one feed record; unknown keys are ignored."""

    source: StrictStr
    tags: List[StrictStr]

    def to_item(self) -> Item:
        return Item.create(self.source, self.tags)


_FEED_ADAPTER = TypeAdapter(List[FeedEntry])


def decode_feed(payload: bytes | str) -> List[Item]:
    """Parse a raw feed body into Items, preserving feed order."""
    try:
        entries = _FEED_ADAPTER.validate_json(payload)
    except ValidationError as e:
        raise DecodeError(
            f"Feed payload is not a list of {{source, tags}} objects: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)[:5]},
        ) from e
    return [entry.to_item() for entry in entries]


class FeedFetcher:
    """Retrieves the current item list from the remote feed.

    One GET per ``fetch()`` call, no retries and no caching; the refresh
    scheduler's next tick is the retry.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    async def fetch(self) -> List[Item]:
        if self._client is not None:
            return await self._fetch_with(self._client)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout), headers={"Accept": "application/json"}
        ) as client:
            return await self._fetch_with(client)

    async def _fetch_with(self, client: httpx.AsyncClient) -> List[Item]:
        try:
            r = await client.get(self.url, timeout=self.timeout)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"Feed answered HTTP {e.response.status_code}",
                details={"url": self.url, "status": e.response.status_code, "body": e.response.text[:200]},
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Feed request failed: {e!r}", details={"url": self.url}) from e

        items = decode_feed(r.content)
        logger.info("Fetched %d items from %s", len(items), self.url)
        return items
