from __future__ import annotations

import re
from typing import Dict, FrozenSet, Iterable, List, Optional

MAX_TICKERS_PER_DOCUMENT = 5

_cashtag_re = re.compile(r"\$([A-Z]{1,5})\b")
_paren_re = re.compile(r"\(([A-Z]{1,5})\)")
_quote_path_re = re.compile(r"/quote/([A-Z]{1,5})\b")
_symbol_re = re.compile(r"^[A-Z]{1,5}$")

# Lowercase company name -> ticker. Matched as plain substrings, so keep
# names long or distinctive enough not to fire inside ordinary words.
NAME_TO_TICKER: Dict[str, str] = {
    "nvidia": "NVDA",
    "advanced micro devices": "AMD",
    "amd": "AMD",
    "oracle": "ORCL",
    "broadcom": "AVGO",
    "palantir": "PLTR",
    "cloudflare": "NET",
    "amazon": "AMZN",
    "alphabet": "GOOGL",
    "google": "GOOGL",
    "microsoft": "MSFT",
    "kla corporation": "KLAC",
    "ibm": "IBM",
    "apple": "AAPL",
    "intel": "INTC",
    "costco": "COST",
    "tesla": "TSLA",
    "meta platforms": "META",
    "facebook": "META",
    "servicenow": "NOW",
    "netflix": "NFLX",
    "natera": "NTRA",
    "datadog": "DDOG",
    "taiwan semiconductor": "TSM",
    "tsmc": "TSM",
    "micron": "MU",
    "salesforce": "CRM",
    "teradyne": "TER",
    "rocket lab": "RKLB",
    "crowdstrike": "CRWD",
    "unitedhealth": "UNH",
    "jpmorgan": "JPM",
    "abbott": "ABT",
    "beyond meat": "BYND",
    "ferrari": "RACE",
    "sofi": "SOFI",
    "upstart": "UPST",
    "cameco": "CCJ",
    "shopify": "SHOP",
    "ionq": "IONQ",
    "rigetti": "RGTI",
    "d-wave": "QBTS",
    "sealsq": "LAES",
    "arqit": "ARQQ",
}

# Syntactically valid symbols that are really English words or outlet names.
TICKER_BLACKLIST: FrozenSet[str] = frozenset(
    {
        "IN", "WITH", "AND", "THE", "FOR", "FROM", "OVER", "AFTER", "FIRST",
        "NEWS", "CNBC", "CNN", "TECH", "STOCK", "SHARES", "OFF", "S", "INTEL",
        "CEO", "CFO", "IPO", "ETF", "EPS", "GDP", "US", "USA", "FED", "SEC",
    }
)


def is_valid_ticker(symbol: str) -> bool:
    return bool(_symbol_re.match(symbol or "")) and symbol not in TICKER_BLACKLIST


def _candidates(text: str, url: Optional[str]) -> Iterable[str]:
    yield from _cashtag_re.findall(text)
    yield from _paren_re.findall(text)
    lower = text.lower()
    for name, symbol in NAME_TO_TICKER.items():
        if name in lower:
            yield symbol
    if url:
        m = _quote_path_re.search(url)
        if m:
            yield m.group(1)


def extract_tickers(text: str | None, url: str | None = None) -> List[str]:
    """Derive up to five candidate ticker symbols from headline text and its URL.

    Sources, in discovery order: ``$TICK`` cashtags, ``(TICK)`` mentions,
    known company names, and a ``/quote/TICK`` URL path. Candidates failing the
    symbol shape or sitting in ``TICKER_BLACKLIST`` are dropped.
    """
    out: List[str] = []
    seen: set[str] = set()
    for raw in _candidates(str(text or ""), url):
        symbol = raw.strip().upper()
        if symbol in seen or not is_valid_ticker(symbol):
            continue
        seen.add(symbol)
        out.append(symbol)
        if len(out) >= MAX_TICKERS_PER_DOCUMENT:
            break
    return out
