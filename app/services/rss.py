"""Trending feed fetching and title extraction."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from app.errors import UpstreamFeedError

logger = logging.getLogger(__name__)

MAX_TITLES_PER_FEED = 15
MIN_TITLE_LENGTH = 4

# Order matters: "&amp;#39;" must end up as "'".
_ENTITIES = [
    ("&amp;", "&"),
    ("&#39;", "'"),
    ("&quot;", '"'),
]


def extract_titles(xml: Optional[str], limit: int = MAX_TITLES_PER_FEED) -> List[str]:
    """
    Pull item titles out of RSS text with a linear scan.

    Not an XML parser: the feeds have a fixed shape, so we split on <item>
    and take the first <title>...</title> in each chunk. Malformed or empty
    input gives an empty list.
    """
    titles: List[str] = []
    if not xml:
        return titles

    parts = xml.split("<item>")
    for part in parts[1:]:
        if len(titles) >= limit:
            break
        start = part.find("<title>")
        end = part.find("</title>")
        if start == -1 or end <= start:
            continue

        title = part[start + len("<title>"):end]
        title = title.replace("<![CDATA[", "", 1).replace("]]>", "", 1)
        for entity, char in _ENTITIES:
            title = title.replace(entity, char)
        title = title.strip()

        if len(title) >= MIN_TITLE_LENGTH:
            titles.append(title)

    return titles


@dataclass
class FeedTexts:
    """Raw text of both feeds. Empty string means the fetch failed."""
    news: str
    trends: str


class TrendingFeeds:
    """Fetches the news and trends feeds concurrently."""

    def __init__(
        self,
        news_url: str,
        trends_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.news_url = news_url
        self.trends_url = trends_url
        self.timeout = timeout
        self._transport = transport

    async def fetch(self) -> FeedTexts:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            news, trends = await asyncio.gather(
                self._fetch_or_empty(client, self.news_url),
                self._fetch_or_empty(client, self.trends_url),
            )
        return FeedTexts(news=news, trends=trends)

    async def _fetch_or_empty(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            return await fetch_feed_text(client, url)
        except UpstreamFeedError as e:
            logger.warning(str(e))
            return ""


async def fetch_feed_text(client: httpx.AsyncClient, url: str) -> str:
    """GET one feed and return its body text."""
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.text
    except httpx.HTTPError as e:
        raise UpstreamFeedError(url, f"{type(e).__name__}: {e}") from e
