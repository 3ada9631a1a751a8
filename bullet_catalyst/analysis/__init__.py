"""Ticker grouping, corpus building, and merge/rank of provider tracks."""

from .ticker_grouper import TickerGroups, group_by_ticker
from .corpus import build_corpus, build_prompt
from .merge import (
    MergeReport,
    apply_degraded_fallback,
    catalyst_bonus,
    merge_and_rank,
    merge_results,
    provider_status_summary,
    rank_top,
)

__all__ = [
    "TickerGroups",
    "group_by_ticker",
    "build_corpus",
    "build_prompt",
    "MergeReport",
    "apply_degraded_fallback",
    "catalyst_bonus",
    "merge_and_rank",
    "merge_results",
    "provider_status_summary",
    "rank_top",
]
