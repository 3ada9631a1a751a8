"""Merge provider tracks into per-ticker records and rank each track.

Every provider keeps its own track: its own sentiment, its own catalyst pool
and its own score. Nothing is blended across providers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import TotalProviderFailure
from ..models import MergedResult, NewsDocument, ProviderResult, ProviderScore, TickerAssessment
from ..models.assessment import PRIMARY_NEUTRAL, clamp
from ..processors.heuristic import HEURISTIC_BASELINE, heuristic_assessments, unique_case_fold
from ..processors.keywords import CATALYST_BEARISH, CATALYST_BULLISH, any_match
from ..utils.logging import get_logger

logger = get_logger("bc.analysis.merge")

CATALYST_BONUS_SCALE = 0.1
DEFAULT_TOP_N = 10


@dataclass(slots=True)
class MergeReport:
    merged: List[MergedResult]
    rankings: Dict[str, List[MergedResult]]
    advisories: List[str] = field(default_factory=list)
    provider_status: Dict[str, str] = field(default_factory=dict)
    provider_order: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    def label_for(self, provider: str) -> str:
        return self.labels.get(provider, provider)

    @property
    def status_line(self) -> str:
        return " | ".join(f"{self.label_for(p)}: {self.provider_status.get(p, 'EMPTY')}" for p in self.provider_order)


def catalyst_bonus(catalysts: Sequence[str]) -> float:
    """+5 per bullish catalyst, -8 per bearish one, scaled down to a light bias.

    Catalysts repeated with different casing count once.
    """
    raw = 0
    for catalyst in unique_case_fold(catalysts):
        if any_match(catalyst, CATALYST_BULLISH):
            raw += CATALYST_BULLISH[0].weight
        if any_match(catalyst, CATALYST_BEARISH):
            raw += CATALYST_BEARISH[0].weight
    return raw * CATALYST_BONUS_SCALE


def _score_track(assessment: Optional[TickerAssessment], neutral: int) -> ProviderScore:
    if assessment is None:
        return ProviderScore(sentiment=neutral, score=float(clamp(neutral)))
    catalysts = assessment.catalysts
    return ProviderScore(
        sentiment=assessment.sentiment,
        score=float(clamp(assessment.sentiment + catalyst_bonus(catalysts))),
        catalysts=catalysts,
        rationale=assessment.rationale,
    )


def merge_results(
    tickers: Sequence[str],
    results_by_provider: Mapping[str, Sequence[TickerAssessment]],
    neutral_by_provider: Optional[Mapping[str, int]] = None,
) -> List[MergedResult]:
    """One MergedResult per ticker, in ``tickers`` order.

    Tickers a provider did not mention get that provider's neutral sentiment.
    """
    neutral_by_provider = neutral_by_provider or {}
    lookups: Dict[str, Dict[str, TickerAssessment]] = {
        provider: {a.ticker.upper(): a for a in assessments}
        for provider, assessments in results_by_provider.items()
    }
    merged: List[MergedResult] = []
    for ticker in tickers:
        key = ticker.upper()
        tracks = {
            provider: _score_track(lookup.get(key), neutral_by_provider.get(provider, PRIMARY_NEUTRAL))
            for provider, lookup in lookups.items()
        }
        merged.append(MergedResult(ticker=key, tracks=tracks))
    return merged


def rank_top(merged: Sequence[MergedResult], provider: str, top_n: int = DEFAULT_TOP_N) -> List[MergedResult]:
    # sorted() is stable: equal scores keep discovery order
    return sorted(merged, key=lambda m: -m.score_for(provider))[: max(top_n, 0)]


def degraded_advisory(result: ProviderResult, label: str) -> str:
    if result.error_kind == "no_credits":
        reason = f"{label} unavailable (account has no credits)"
    elif result.error_kind == "missing_key":
        reason = f"{label} unavailable (API key not set)"
    elif result.error_kind == "dry_run":
        reason = f"{label} skipped (dry run)"
    elif result.ok or result.error_kind == "parse_failure":
        reason = f"{label} returned no structured results"
    elif result.error_message:
        reason = f"{label} unavailable ({result.error_message})"
    else:
        reason = f"{label} unavailable"
    return f"{reason}; {label} section uses news-only heuristics."


def apply_degraded_fallback(
    results: Mapping[str, ProviderResult],
    by_ticker: Mapping[str, Sequence[NewsDocument]],
    *,
    neutral_by_provider: Optional[Mapping[str, int]] = None,
    labels: Optional[Mapping[str, str]] = None,
) -> Tuple[Dict[str, List[TickerAssessment]], List[str]]:
    """Swap heuristic scores into every track whose live results are empty.

    Returns the per-provider assessment lists and the advisories to show in
    the report. A track's heuristic sits as far below the baseline as its
    neutral default does, so secondary tracks score two points lower.
    """
    neutral_by_provider = neutral_by_provider or {}
    labels = labels or {}
    tracks: Dict[str, List[TickerAssessment]] = {}
    advisories: List[str] = []
    for provider, result in results.items():
        if result.has_results:
            tracks[provider] = list(result.results)
            continue
        offset = neutral_by_provider.get(provider, PRIMARY_NEUTRAL) - HEURISTIC_BASELINE
        tracks[provider] = heuristic_assessments(by_ticker, offset=offset)
        advisory = degraded_advisory(result, labels.get(provider, provider))
        logger.warning(advisory)
        advisories.append(advisory)
    return tracks, advisories


def provider_status_summary(
    results: Mapping[str, ProviderResult], labels: Optional[Mapping[str, str]] = None
) -> str:
    labels = labels or {}
    return " | ".join(f"{labels.get(p, p)}: {r.status_label()}" for p, r in results.items())


def merge_and_rank(
    by_ticker: Mapping[str, Sequence[NewsDocument]],
    results: Mapping[str, ProviderResult],
    *,
    neutral_by_provider: Optional[Mapping[str, int]] = None,
    labels: Optional[Mapping[str, str]] = None,
    top_n: int = DEFAULT_TOP_N,
    heuristic_fallback: bool = True,
    require_live: bool = True,
) -> MergeReport:
    """Merge the provider results for every grouped ticker and rank each track.

    ``results`` is ordered; that order is the report's provider order.
    Raises TotalProviderFailure when no live provider answered (unless
    ``require_live`` is off, as for dry runs) or when every track is empty
    after substitution.
    """
    labels = dict(labels or {})
    status_line = provider_status_summary(results, labels)
    logger.info("Provider status: %s", status_line)

    if require_live and not any(r.has_results for r in results.values()):
        raise TotalProviderFailure(status_line)

    if heuristic_fallback:
        tracks, advisories = apply_degraded_fallback(
            results, by_ticker, neutral_by_provider=neutral_by_provider, labels=labels
        )
    else:
        tracks = {p: list(r.results) for p, r in results.items()}
        advisories = []

    if not any(tracks.values()):
        raise TotalProviderFailure(status_line)

    for provider, items in tracks.items():
        logger.debug("Track %s: %d assessment(s)", provider, len(items))

    merged = merge_results(list(by_ticker.keys()), tracks, neutral_by_provider)
    rankings = {provider: rank_top(merged, provider, top_n) for provider in results}
    return MergeReport(
        merged=merged,
        rankings=rankings,
        advisories=advisories,
        provider_status={p: r.status_label() for p, r in results.items()},
        provider_order=list(results.keys()),
        labels=labels,
    )
