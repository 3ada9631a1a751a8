from __future__ import annotations

import html
import re
import unicodedata
from typing import TYPE_CHECKING, Iterable, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..models import NewsDocument
from ..utils.logging import get_logger
from .tickers import extract_tickers

if TYPE_CHECKING:  # pragma: no cover
    from ..fetchers.rss import RSSItem

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
_href_re = re.compile(r'href="([^"]+)"', re.IGNORECASE)

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u00A0"): " ",  # non-breaking space
}

_logger = get_logger("bc.processors.normalize")


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text(" ")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text for downstream processing.

    - Strip BOM
    - Replace curly quotes and non-breaking spaces
    - Unicode normalize (NFKC)
    - Remove control characters
    - Collapse whitespace
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    return _whitespace_re.sub(" ", text).strip()


def source_hostname(url: str | None) -> str:
    if not url:
        return ""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def build_document(item: "RSSItem") -> Optional[NewsDocument]:
    """Turn one feed entry into a ``NewsDocument``; None when it carries no text."""
    title = normalize_plain_text(clean_html_to_text(item.title))
    snippet = normalize_plain_text(clean_html_to_text(item.description))
    link = (item.link or "").strip()
    if not link and item.description:
        # Google News wraps the article link inside the summary markup
        m = _href_re.search(item.description)
        if m:
            link = html.unescape(m.group(1))

    if not title and not snippet:
        return None

    return NewsDocument(
        title=title,
        url=link,
        source=source_hostname(link),
        snippet=snippet,
        tickers=tuple(extract_tickers(f"{title} {snippet}", link)),
    )


def batch_documents(items: Iterable["RSSItem"]) -> List[NewsDocument]:
    """Normalize feed entries, skipping empty ones and any that fail to parse."""
    docs: List[NewsDocument] = []
    for item in items:
        try:
            doc = build_document(item)
        except Exception as exc:  # noqa: BLE001 - one bad entry must not sink the feed
            _logger.warning("Failed to normalize entry '%s': %s", getattr(item, "title", "?"), exc)
            continue
        if doc is not None:
            docs.append(doc)
    return docs
