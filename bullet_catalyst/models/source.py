from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal

SourceType = Literal["rss"]


@dataclass(slots=True)
class Source:
    """Configuration for a news feed."""

    name: str
    url: str
    type: SourceType = "rss"
    headers: Dict[str, str] = field(default_factory=dict)
