from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class NewsDocument:
    """One normalized headline/snippet pulled from a feed entry."""

    title: str
    url: str
    source: str
    snippet: str
    tickers: Tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return f"{self.title} {self.snippet}".strip()

    def bullet(self) -> str:
        sep = " — " if self.title and self.snippet else ""
        return f"• {self.title}{sep}{self.snippet}"
