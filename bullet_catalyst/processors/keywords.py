"""Keyword predicate tables for the news heuristics and the catalyst bonus.

Each rule pairs a keyword with a compiled pattern and a weight, so every
keyword's effect can be looked up and tested on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class KeywordRule:
    keyword: str
    weight: int
    pattern: str
    _regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_regex", re.compile(self.pattern, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        return bool(self._regex.search(text or ""))


def _rules(weight: int, patterns: Sequence[Tuple[str, str]]) -> Tuple[KeywordRule, ...]:
    return tuple(KeywordRule(keyword=k, weight=weight, pattern=p) for k, p in patterns)


# Heuristic scorer: whole words against lowercased title+snippet text.
HEADLINE_BULLISH: Tuple[KeywordRule, ...] = _rules(
    15,
    [
        ("beat", r"\bbeats?\b"),
        ("upgrade", r"\bupgrade[sd]?\b"),
        ("raise", r"\brais(?:e|es|ed|ing)\b"),
        ("contract", r"\bcontracts?\b"),
        ("win", r"\bwins?\b"),
        ("license", r"\blicen[cs]e[sd]?\b"),
        ("record", r"\brecords?\b"),
        ("guidance", r"\bguidance\b"),
        ("ai", r"\bai\b"),
        ("chip", r"\bchips?\b"),
        ("backlog", r"\bbacklogs?\b"),
    ],
)

HEADLINE_BEARISH: Tuple[KeywordRule, ...] = _rules(
    -15,
    [
        ("downgrade", r"\bdowngrade[sd]?\b"),
        ("miss", r"\bmiss(?:es|ed)?\b"),
        ("probe", r"\bprobes?\b"),
        ("lawsuit", r"\blawsuits?\b"),
        ("recall", r"\brecalls?\b"),
        ("cut", r"\bcuts?\b"),
        ("layoff", r"\blayoffs?\b"),
        ("halt", r"\bhalt(?:s|ed)?\b"),
    ],
)

# Catalyst bonus: word-prefix matches, so "beats", "raised", "revenue" count.
CATALYST_BULLISH: Tuple[KeywordRule, ...] = _rules(
    5,
    [
        ("upgrade", r"\bupgrad"),
        ("beat", r"\bbeat"),
        ("raise", r"\brais"),
        ("guide", r"\bguid"),
        ("margin", r"\bmargin"),
        ("contract", r"\bcontract"),
        ("order", r"\border"),
        ("backlog", r"\bbacklog"),
        ("ai", r"\bai\b"),
        ("launch", r"\blaunch"),
        ("license", r"\blicen[cs]"),
        ("win", r"\bwin(?:s|ning)?\b"),
        ("eps", r"\beps\b"),
        ("revenue", r"\brev(?:enue)?"),
    ],
)

CATALYST_BEARISH: Tuple[KeywordRule, ...] = _rules(
    -8,
    [
        ("lawsuit", r"\blawsuit"),
        ("probe", r"\bprobe"),
        ("miss", r"\bmiss(?:es|ed|ing)?\b"),
        ("restatement", r"\brestate"),
        ("delist", r"\bdelist"),
        ("default", r"\bdefault"),
        ("downgrade", r"\bdowngrad"),
        ("dilution", r"\bdilut"),
    ],
)


def matching_keywords(text: str, rules: Iterable[KeywordRule]) -> List[str]:
    return [r.keyword for r in rules if r.matches(text)]


def any_match(text: str, rules: Iterable[KeywordRule]) -> bool:
    return any(r.matches(text) for r in rules)


def polarity_weight(text: str, rules: Sequence[KeywordRule]) -> int:
    """Weight of a rule table applied once if any of its rules match ``text``."""
    if not rules or not any_match(text, rules):
        return 0
    return rules[0].weight
