from __future__ import annotations

from typing import Dict, Iterable, List

from ..models import NewsDocument
from ..processors.tickers import is_valid_ticker

TickerGroups = Dict[str, List[NewsDocument]]


def group_by_ticker(documents: Iterable[NewsDocument]) -> TickerGroups:
    """Map each ticker to the documents mentioning it, in first-seen order.

    A document with several tickers is listed under each of them. Documents
    without a valid ticker do not appear in the mapping.
    """
    groups: TickerGroups = {}
    for doc in documents:
        for ticker in dict.fromkeys(doc.tickers):
            if not is_valid_ticker(ticker):
                continue
            groups.setdefault(ticker, []).append(doc)
    return groups
