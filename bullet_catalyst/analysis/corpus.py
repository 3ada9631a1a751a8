from __future__ import annotations

from typing import List, Mapping, Sequence

from ..models import NewsDocument

DEFAULT_MAX_CORPUS_CHARS = 16000
NO_NEWS_PLACEHOLDER = "(no news)"


def ticker_block(ticker: str, documents: Sequence[NewsDocument]) -> str:
    lines = "\n".join(doc.bullet() for doc in documents)
    return f"=== {ticker} ===\n{lines or NO_NEWS_PLACEHOLDER}\n"


def build_corpus(
    by_ticker: Mapping[str, Sequence[NewsDocument]],
    *,
    max_chars: int = DEFAULT_MAX_CORPUS_CHARS,
) -> str:
    """Serialize grouped news into one prompt corpus of at most ``max_chars`` characters.

    The cut at ``max_chars`` is a plain slice: the last block may end mid-line
    and later tickers are dropped. That loss is accepted to keep requests under
    provider size limits.
    """
    blocks: List[str] = [ticker_block(t, docs) for t, docs in by_ticker.items()]
    corpus = "\n".join(blocks)
    return corpus[:max_chars] if max_chars >= 0 else corpus


def build_prompt(corpus: str, task: str) -> str:
    return f"PROMPT CORPUS:\n{corpus}\n\nTASK:\n{task}"
