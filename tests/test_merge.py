import pytest

from conftest import make_doc

from bullet_catalyst.analysis.merge import (
    apply_degraded_fallback,
    catalyst_bonus,
    merge_and_rank,
    merge_results,
    provider_status_summary,
    rank_top,
)
from bullet_catalyst.errors import TotalProviderFailure
from bullet_catalyst.models import ProviderResult, TickerAssessment

NEUTRALS = {"gpt": 50, "grok": 48, "groq": 48}
LABELS = {"gpt": "GPT", "grok": "Grok", "groq": "Groq"}
BY_TICKER = {
    "NVDA": [make_doc("Nvidia beats estimates", tickers=["NVDA"])],
    "AMD": [make_doc("AMD faces lawsuit", tickers=["AMD"])],
}


def ta(ticker, sentiment, *catalysts):
    return TickerAssessment(ticker=ticker, sentiment=sentiment, catalysts=tuple(catalysts))


def test_catalyst_bonus():
    assert catalyst_bonus([]) == 0
    assert catalyst_bonus(["Beat and raise"]) == pytest.approx(0.5)
    assert catalyst_bonus(["raised guidance", "lawsuit risk"]) == pytest.approx(-0.3)
    assert catalyst_bonus(["beat despite lawsuit"]) == pytest.approx(-0.3)
    assert catalyst_bonus(["CEO interview"]) == 0


def test_repeated_catalyst_scores_once():
    assert catalyst_bonus(["Beat estimates", "beat estimates "]) == pytest.approx(0.5)
    merged = merge_results(["NVDA"], {"gpt": [ta("NVDA", 60, "Beat estimates", "beat estimates")]})
    assert merged[0].score_for("gpt") == pytest.approx(60.5)


def test_merge_uses_neutral_defaults_and_own_catalysts():
    merged = merge_results(
        ["NVDA", "AMD"],
        {"gpt": [ta("nvda", 80, "beat")], "grok": [ta("AMD", 60)]},
        {"gpt": 50, "grok": 48},
    )
    nvda, amd = merged
    assert nvda.ticker == "NVDA"
    assert nvda.sentiment_for("gpt") == 80
    assert nvda.score_for("gpt") == pytest.approx(80.5)
    assert nvda.sentiment_for("grok") == 48
    assert nvda.catalysts_for("grok") == ()
    assert amd.score_for("gpt") == 50
    assert amd.score_for("grok") == 60
    assert nvda.as_dict()["catalysts_gpt"] == ["beat"]
    assert set(nvda.as_dict()) >= {"sentiment_grok", "score_grok", "catalysts_grok"}


@pytest.mark.parametrize("raw", [-50, 0, 49.6, 100, 1e9, "nan", "abc", None, True])
def test_scores_stay_in_range(raw):
    assessment = TickerAssessment.from_raw(
        {"ticker": "MU", "sentiment": raw, "catalysts": ["beat", "upgrade", "record order", "lawsuit"]}
    )
    (merged,) = merge_results(["MU"], {"gpt": [assessment]}, {"gpt": 50})
    assert 0 <= merged.score_for("gpt") <= 100
    assert 0 <= merged.sentiment_for("gpt") <= 100


def test_score_clamps_at_bounds():
    merged = merge_results(["A", "B"], {"gpt": [ta("A", 100, "beat", "upgrade"), ta("B", 0, "lawsuit")]})
    assert merged[0].score_for("gpt") == 100
    assert merged[1].score_for("gpt") == 0


def test_rank_top_is_stable_and_truncates():
    tickers = ["AAA", "BBB", "CCC", "DDD"]
    results = {"gpt": [ta("CCC", 90), ta("AAA", 60), ta("BBB", 60), ta("DDD", 60)]}
    merged = merge_results(tickers, results, NEUTRALS)
    assert [m.ticker for m in rank_top(merged, "gpt")] == ["CCC", "AAA", "BBB", "DDD"]
    assert [m.ticker for m in rank_top(merged, "gpt", top_n=2)] == ["CCC", "AAA"]
    again = merge_results(tickers, results, NEUTRALS)
    assert [m.ticker for m in rank_top(again, "gpt")] == [m.ticker for m in rank_top(merged, "gpt")]


def _results(**overrides):
    results = {
        "gpt": ProviderResult(provider="gpt", results=[ta("NVDA", 80, "beat")]),
        "grok": ProviderResult.failure("grok", "no_credits", "team has no credits", status_code=403),
        "groq": ProviderResult.failure("groq", "missing_key", "GROQ_API_KEY not set"),
    }
    results.update(overrides)
    return results


def test_degraded_fallback_substitutes_heuristics():
    tracks, advisories = apply_degraded_fallback(
        _results(), BY_TICKER, neutral_by_provider=NEUTRALS, labels=LABELS
    )
    assert tracks["gpt"] == [ta("NVDA", 80, "beat")]
    grok = {a.ticker: a.sentiment for a in tracks["grok"]}
    assert grok == {"NVDA": 63, "AMD": 33}
    assert len(advisories) == 2
    assert "no credits" in advisories[0] and advisories[0].startswith("Grok")
    assert advisories[0].endswith("Grok section uses news-only heuristics.")
    assert "Groq" in advisories[1]


def test_empty_primary_gets_unshifted_heuristic():
    results = _results(gpt=ProviderResult(provider="gpt", results=[]))
    tracks, advisories = apply_degraded_fallback(results, BY_TICKER, neutral_by_provider=NEUTRALS, labels=LABELS)
    assert {a.ticker: a.sentiment for a in tracks["gpt"]} == {"NVDA": 65, "AMD": 35}
    assert advisories[0] == "GPT returned no structured results; GPT section uses news-only heuristics."


def test_provider_status_summary():
    assert provider_status_summary(_results(), LABELS) == "GPT: OK (1) | Grok: NO_CREDITS | Groq: NO_KEY"
    empty = {"gpt": ProviderResult(provider="gpt")}
    assert provider_status_summary(empty, LABELS) == "GPT: EMPTY"


def test_merge_and_rank_report():
    report = merge_and_rank(BY_TICKER, _results(), neutral_by_provider=NEUTRALS, labels=LABELS)
    assert report.provider_order == ["gpt", "grok", "groq"]
    assert [m.ticker for m in report.merged] == ["NVDA", "AMD"]
    assert [m.ticker for m in report.rankings["gpt"]] == ["NVDA", "AMD"]
    # heuristic catalysts are headlines, so the bonus applies to them too
    assert report.rankings["grok"][0].score_for("grok") == pytest.approx(63.5)
    assert report.provider_status["grok"] == "NO_CREDITS"
    assert report.status_line == "GPT: OK (1) | Grok: NO_CREDITS | Groq: NO_KEY"
    assert any("no credits" in a for a in report.advisories)


def test_merge_and_rank_without_heuristic_fallback():
    report = merge_and_rank(
        BY_TICKER, _results(), neutral_by_provider=NEUTRALS, labels=LABELS, heuristic_fallback=False
    )
    assert report.advisories == []
    assert all(m.sentiment_for("grok") == 48 for m in report.merged)


def test_all_providers_failed_is_fatal():
    failed = {
        "gpt": ProviderResult.failure("gpt", "parse_failure"),
        "grok": ProviderResult.failure("grok", "timeout"),
        "groq": ProviderResult.failure("groq", "missing_key"),
    }
    with pytest.raises(TotalProviderFailure) as excinfo:
        merge_and_rank(BY_TICKER, failed, labels=LABELS)
    message = str(excinfo.value)
    assert "Check API keys, quotas, or model names" in message
    assert "Grok: TIMEOUT" in excinfo.value.status


def test_dry_run_merge_renders_heuristics_only():
    dry = {p: ProviderResult.failure(p, "dry_run", "dry run") for p in ("gpt", "grok", "groq")}
    report = merge_and_rank(BY_TICKER, dry, neutral_by_provider=NEUTRALS, labels=LABELS, require_live=False)
    assert len(report.advisories) == 3
    assert report.status_line == "GPT: DRY_RUN | Grok: DRY_RUN | Groq: DRY_RUN"
    with pytest.raises(TotalProviderFailure):
        merge_and_rank({}, dry, labels=LABELS, require_live=False)
