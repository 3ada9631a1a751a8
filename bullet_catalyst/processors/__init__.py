"""Processing pipeline: normalization, ticker extraction, keyword heuristics."""

from .normalize import batch_documents, build_document, clean_html_to_text, normalize_plain_text
from .tickers import extract_tickers, is_valid_ticker
from .heuristic import headline_sentiment, heuristic_assessments

__all__ = [
    "batch_documents",
    "build_document",
    "clean_html_to_text",
    "normalize_plain_text",
    "extract_tickers",
    "is_valid_ticker",
    "headline_sentiment",
    "heuristic_assessments",
]
