from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence

from ..models import NewsDocument, TickerAssessment
from ..models.assessment import clamp
from .keywords import HEADLINE_BEARISH, HEADLINE_BULLISH, polarity_weight

HEURISTIC_BASELINE = 50
MAX_HEURISTIC_CATALYSTS = 6


def unique_case_fold(values: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive repeats, keeping first spelling and order."""
    seen: set[str] = set()
    out: List[str] = []
    for v in values:
        key = str(v or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(v)
    return out


def headline_sentiment(text: str, *, baseline: int = HEURISTIC_BASELINE) -> int:
    """Keyword sentiment for a block of news text.

    Bullish and bearish tables each adjust the baseline once; both can apply.
    """
    lowered = (text or "").lower()
    score = baseline + polarity_weight(lowered, HEADLINE_BULLISH) + polarity_weight(lowered, HEADLINE_BEARISH)
    return int(clamp(score))


def heuristic_assessments(
    by_ticker: Mapping[str, Sequence[NewsDocument]],
    *,
    baseline: int = HEURISTIC_BASELINE,
    offset: int = 0,
) -> List[TickerAssessment]:
    """Score every ticker from its headlines alone, for use when a provider is down."""
    out: List[TickerAssessment] = []
    for ticker, docs in by_ticker.items():
        text = " ".join(f"{d.title} {d.snippet}" for d in docs)
        sentiment = int(clamp(headline_sentiment(text, baseline=baseline) + offset))
        titles = [d.title for d in docs][:MAX_HEURISTIC_CATALYSTS]
        out.append(
            TickerAssessment(
                ticker=ticker,
                sentiment=sentiment,
                catalysts=tuple(unique_case_fold(titles)),
                rationale="news-only heuristic",
            )
        )
    return out
