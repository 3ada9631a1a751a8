from __future__ import annotations

from pathlib import Path
from typing import Iterable, List
from urllib.parse import urlparse

import yaml

from ..errors import ConfigError
from ..models import Source

REQUIRED_FIELDS = {"name", "url"}

DEFAULT_FEEDS: List[Source] = [
    Source(name="CNBC Top News", url="https://www.cnbc.com/id/100003114/device/rss/rss.html"),
    Source(name="CNN Money", url="http://rss.cnn.com/rss/money_latest.rss"),
    Source(
        name="Google News stocks",
        url=(
            "https://news.google.com/rss/search?hl=en-US&gl=US&ceid=US:en&q=stocks%20"
            "(earnings%20OR%20upgrade%20OR%20guidance%20OR%20contract%20OR%20raise)%20"
            "site:(yahoo.com%20OR%20cnbc.com%20OR%20cnn.com)"
        ),
    ),
]


def _validate_feed_dict(entry: dict) -> None:
    """Validate a single feed mapping from YAML.

    Required fields: name (str), url (http/https).
    Optional fields:
      - type: 'rss' (default)
      - headers: mapping[str, str]
    """
    missing = REQUIRED_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {entry}")

    feed_type = entry.get("type", "rss")
    if feed_type != "rss":
        raise ConfigError(f"Invalid type '{feed_type}'. Only 'rss' feeds are supported.")

    url_str = str(entry["url"]).strip()
    parsed = urlparse(url_str)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid URL '{url_str}'. Must be absolute http(s) URL.")

    if "headers" in entry and entry["headers"] is not None:
        headers = entry["headers"]
        if not isinstance(headers, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in headers.items()):
            raise ConfigError("'headers' must be a mapping of string keys to string values if provided")


def _coerce_feed(entry: dict) -> Source:
    headers = entry.get("headers") or {}
    return Source(
        name=str(entry["name"]).strip(),
        url=str(entry["url"]).strip(),
        type="rss",
        headers={str(k): str(v) for k, v in headers.items()},
    )


def load_feeds_config(path: Path | str | None) -> List[Source]:
    """Load ``feeds.yaml`` into typed ``Source`` instances.

    YAML structure:
      - Top-level mapping
      - Key ``feeds``: list of feed mappings with fields
          - name: string (required)
          - url: http/https URL (required)
          - type: 'rss' (optional)
          - headers: mapping[string, string] (optional)

    ``None`` selects ``DEFAULT_FEEDS``. Unknown top-level keys are ignored for
    forward compatibility.
    """
    if path is None:
        return list(DEFAULT_FEEDS)
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML value must be a mapping")

    feeds_raw: Iterable[dict] = data.get("feeds") or []
    if not isinstance(feeds_raw, list):
        raise ConfigError("'feeds' must be a list in the YAML configuration")

    feeds: List[Source] = []
    for item in feeds_raw:
        if not isinstance(item, dict):
            raise ConfigError(f"Each feed must be a mapping, got: {type(item)}")
        _validate_feed_dict(item)
        feeds.append(_coerce_feed(item))
    if not feeds:
        raise ConfigError(f"No feeds configured in {config_path}")
    return feeds
