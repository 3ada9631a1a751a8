from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

import feedparser
import requests

from ..models import Source
from ..utils.logging import get_logger

logger = get_logger("bc.fetchers.rss")


@dataclass(slots=True)
class RSSItem:
    title: str
    link: str
    description: Optional[str]


_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    ),
    "Accept": "application/rss+xml, text/xml;q=0.9, */*;q=0.8",
}


def _entry_description(entry) -> Optional[str]:
    description = getattr(entry, "summary", None) or getattr(entry, "description", None)
    if description:
        return description
    contents = getattr(entry, "content", None)
    if contents and isinstance(contents, list):
        return contents[0].get("value")
    return None


def fetch_rss_entries(
    source: Source, *, timeout: int = 45, session: Optional[requests.Session] = None
) -> List[RSSItem]:
    """Fetch and parse RSS/Atom feed entries with timeouts and basic robustness.

    The underlying network request is done with ``requests`` to ensure
    consistent timeouts and headers, through ``session`` when one is given.
    The response body is then parsed by ``feedparser`` to handle various
    feed formats.
    """
    if source.type != "rss":
        raise ValueError("fetch_rss_entries requires a source of type 'rss'")

    logger.debug("Fetching RSS from %s", source.url)
    headers = {**_DEFAULT_HEADERS, **(source.headers or {})}
    try:
        http = session or requests
        resp = http.get(source.url, headers=headers, timeout=timeout)
        if resp.status_code >= 400:
            logger.warning("RSS fetch failed (%s): %s", resp.status_code, source.url)
            resp.raise_for_status()
        parsed = feedparser.parse(resp.content)
    except requests.RequestException as exc:
        logger.warning("RSS request error for %s: %s", source.url, exc)
        raise

    if getattr(parsed, "bozo", False):
        # feedparser sets bozo when it encounters a feed error but may still parse entries
        logger.debug("Feed 'bozo' flagged for %s: %s", source.url, getattr(parsed, "bozo_exception", None))

    items: List[RSSItem] = []
    for entry in getattr(parsed, "entries", []) or []:
        items.append(
            RSSItem(
                title=getattr(entry, "title", None) or "",
                link=getattr(entry, "link", None) or getattr(entry, "id", None) or "",
                description=_entry_description(entry),
            )
        )

    logger.info("Fetched %d RSS entries from %s", len(items), source.name)
    return items


def fetch_all_feeds(
    sources: Iterable[Source],
    *,
    timeout: int = 45,
    delay: float = 0.3,
    session: Optional[requests.Session] = None,
) -> List[RSSItem]:
    """Fetch every feed in order, skipping feeds that fail.

    Feeds are fetched one after another with a short pause between them.
    """
    items: List[RSSItem] = []
    for idx, source in enumerate(sources):
        if idx and delay > 0:
            time.sleep(delay)
        try:
            items.extend(fetch_rss_entries(source, timeout=timeout, session=session))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Skipping feed %s: %s", source.name, exc)
    return items
