from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

ErrorKind = Literal[
    "missing_key",
    "http_error",
    "forbidden",
    "no_credits",
    "parse_failure",
    "timeout",
    "unavailable",
    "dry_run",
]

PRIMARY_NEUTRAL = 50
SECONDARY_NEUTRAL = 48


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def coerce_sentiment(value: Any, default: int) -> int:
    """Return ``value`` as an int in [0, 100], or ``default`` if it is not numeric."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(num):
        return default
    return int(round(clamp(num)))


def _coerce_catalysts(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    out: List[str] = []
    for item in value:
        if item is None:
            continue
        text = " ".join(str(item).split())
        if text:
            out.append(text)
    return tuple(out)


@dataclass(frozen=True, slots=True)
class TickerAssessment:
    ticker: str
    sentiment: int
    catalysts: Tuple[str, ...] = ()
    rationale: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], *, neutral: int = PRIMARY_NEUTRAL) -> Optional["TickerAssessment"]:
        """Build an assessment from one provider ``results`` item.

        Returns None for items without a usable ticker.
        """
        if not isinstance(raw, dict):
            return None
        ticker = str(raw.get("ticker") or "").strip().lstrip("$").upper()
        if not ticker:
            return None
        rationale = raw.get("rationale")
        return cls(
            ticker=ticker,
            sentiment=coerce_sentiment(raw.get("sentiment"), neutral),
            catalysts=_coerce_catalysts(raw.get("catalysts")),
            rationale=str(rationale).strip() if rationale else None,
        )


@dataclass(slots=True)
class ProviderResult:
    """Outcome of one provider call. Failures are data, never exceptions."""

    provider: str
    results: List[TickerAssessment] = field(default_factory=list)
    ok: bool = True
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    model: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def failure(
        cls,
        provider: str,
        kind: ErrorKind,
        message: Optional[str] = None,
        *,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> "ProviderResult":
        return cls(
            provider=provider,
            results=[],
            ok=False,
            error_kind=kind,
            error_message=message,
            model=model,
            status_code=status_code,
        )

    @property
    def has_results(self) -> bool:
        return bool(self.results)

    def status_label(self) -> str:
        if self.results:
            return f"OK ({len(self.results)})"
        if self.error_kind == "missing_key":
            return "NO_KEY"
        if self.error_kind:
            return self.error_kind.upper()
        return "EMPTY"


@dataclass(frozen=True, slots=True)
class ProviderScore:
    sentiment: int
    score: float
    catalysts: Tuple[str, ...] = ()
    rationale: Optional[str] = None


@dataclass(slots=True)
class MergedResult:
    """Per-ticker record holding one independent score track per provider."""

    ticker: str
    tracks: Dict[str, ProviderScore] = field(default_factory=dict)

    def sentiment_for(self, provider: str) -> int:
        return self.tracks[provider].sentiment

    def score_for(self, provider: str) -> float:
        return self.tracks[provider].score

    def catalysts_for(self, provider: str) -> Tuple[str, ...]:
        return self.tracks[provider].catalysts

    def as_dict(self) -> Dict[str, Any]:
        """Flatten into ``sentiment_<provider>``/``score_<provider>``/``catalysts_<provider>`` keys."""
        out: Dict[str, Any] = {"ticker": self.ticker}
        for name, track in self.tracks.items():
            out[f"sentiment_{name}"] = track.sentiment
            out[f"score_{name}"] = track.score
            out[f"catalysts_{name}"] = list(track.catalysts)
        return out
