"""Feed fetching layer for RSS/Atom sources."""

from .rss import RSSItem, fetch_all_feeds, fetch_rss_entries

__all__ = ["RSSItem", "fetch_all_feeds", "fetch_rss_entries"]
