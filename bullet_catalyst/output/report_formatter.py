from __future__ import annotations

from typing import List, Mapping, Sequence

from ..analysis.merge import MergeReport
from ..models import MergedResult, NewsDocument
from ..processors.normalize import source_hostname

MAX_NEWS_BULLETS = 6
_SECTION_TITLES = {"grok": "Grok (xAI)"}
_RULES = ("#" * 70, "#" * 49, "#" * 28)


def _clean(text: str | None) -> str:
    return " ".join(str(text or "").split())


def news_bullets(documents: Sequence[NewsDocument], limit: int = MAX_NEWS_BULLETS) -> List[str]:
    """``• headline - domain`` lines, deduplicated case-insensitively."""
    seen: set[str] = set()
    out: List[str] = []
    for doc in documents:
        title = _clean(doc.title or doc.snippet)
        if not title or title.lower() in seen:
            continue
        seen.add(title.lower())
        domain = _clean(doc.source) or source_hostname(doc.url)
        out.append(f"• {title} - {domain}" if domain else f"• {title}")
        if len(out) >= limit:
            break
    return out


def format_ticker_list(ranked: Sequence[MergedResult]) -> str:
    return ", ".join(m.ticker for m in ranked)


def format_entry(
    item: MergedResult, provider: str, by_ticker: Mapping[str, Sequence[NewsDocument]]
) -> str:
    track = item.tracks[provider]
    blocks: List[str] = []
    catalysts = [f"• {_clean(c)}" for c in track.catalysts[:MAX_NEWS_BULLETS] if _clean(c)]
    if catalysts:
        blocks.append("Catalysts:\n" + "\n".join(catalysts))
    headlines = news_bullets(by_ticker.get(item.ticker, ()))
    if headlines:
        blocks.append("Top headlines:\n" + "\n".join(headlines))
    header = f"**{item.ticker}** — Score:{track.score:.1f} (Sentiment:{track.sentiment})"
    return header + "\n" + "\n\n".join(blocks)


def format_section(
    ranked: Sequence[MergedResult], provider: str, by_ticker: Mapping[str, Sequence[NewsDocument]]
) -> str:
    if not ranked:
        return "_No items._"
    return "\n\n".join(format_entry(item, provider, by_ticker) for item in ranked)


def render_markdown(
    report: MergeReport,
    by_ticker: Mapping[str, Sequence[NewsDocument]],
    *,
    top_n: int = 10,
) -> str:
    """Render the daily report: status banner, model table, one section per provider."""
    banners = [report.status_line, *(f"**{a}**" for a in report.advisories)]
    banner_block = "\n".join(f"> {b}" for b in banners if b)

    table = ["| Model | Top Tickers |", "|-------|-------------|"]
    for provider in report.provider_order:
        label = report.label_for(provider)
        table.append(f"| {label:<5} | {format_ticker_list(report.rankings.get(provider, []))} |")

    lines = [f"# Daily Top {top_n} — Call-Spread Screen (News-driven)", ""]
    if banner_block:
        lines += [banner_block, ""]
    lines += table + [""]
    for provider in report.provider_order:
        title = _SECTION_TITLES.get(provider, report.label_for(provider))
        lines += [*_RULES, f"## Top {top_n} — {title}", *reversed(_RULES), ""]
        lines += [format_section(report.rankings.get(provider, []), provider, by_ticker), ""]
    return "\n".join(lines)


def format_subject(report: MergeReport, *, top_n: int = 10) -> str:
    labels = [report.label_for(p) for p in report.provider_order]
    if len(labels) > 1:
        names = f"{', '.join(labels[:-1])} & {labels[-1]}"
    else:
        names = "".join(labels)
    return f"Top {top_n} Call-Spread Candidates — {names} (last ~3w) [{report.status_line}]"
