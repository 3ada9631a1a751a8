import pytest

from conftest import FakeResponse, FakeSession, results_reply

from bullet_catalyst import main as cli
from bullet_catalyst import orchestrator as orchestrator_module
from bullet_catalyst.errors import TotalProviderFailure
from bullet_catalyst.fetchers.rss import RSSItem
from bullet_catalyst.orchestrator import Orchestrator
from bullet_catalyst.processors.ai import build_provider_configs
from bullet_catalyst.utils.pipeline_config import ProviderSettings, RunConfig

FEED_ITEMS = [
    RSSItem(title="Nvidia (NVDA) beats estimates, raises guidance", link="https://www.cnbc.com/nvda", description=""),
    RSSItem(title="AMD lands AI chip contract", link="https://money.cnn.com/amd", description="<p>Big win</p>"),
    RSSItem(title="Markets drift ahead of the Fed", link="https://www.cnbc.com/mkt", description=None),
]

SETTINGS = ProviderSettings(openai_api_key="sk-openai-123456", xai_api_key="xai-123456789", groq_api_key="gsk-123456789")


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, subject, body):
        self.sent.append((subject, body))
        return True


@pytest.fixture
def feeds(monkeypatch):
    calls = []

    def fake_fetch_all_feeds(sources, *, timeout, delay, session=None):
        calls.append({"sources": list(sources), "session": session})
        return list(FEED_ITEMS)

    monkeypatch.setattr(orchestrator_module, "fetch_all_feeds", fake_fetch_all_feeds)
    return calls


def by_host(gpt, grok, groq):
    def reply(url, body):
        if "openai.com" in url:
            return gpt
        if "x.ai" in url:
            return grok
        return groq

    return reply


def test_partial_outage_degrades_with_advisory(feeds):
    session = FakeSession(
        by_host(
            results_reply([{"ticker": "NVDA", "sentiment": 82, "catalysts": ["raised guidance"]}]),
            FakeResponse(403, {"error": "Your team has no credits"}),
            results_reply([{"ticker": "AMD", "sentiment": 71, "catalysts": ["contract win"]}]),
        )
    )
    sender = RecordingSender()
    orch = Orchestrator(RunConfig(), build_provider_configs(SETTINGS), session=session, email_sender=sender)
    markdown = orch.run([])

    assert feeds[0]["session"] is session
    assert [c["url"].split("/")[2] for c in session.calls] == ["api.openai.com", "api.x.ai", "api.groq.com"]
    assert "PROMPT CORPUS:\n=== NVDA ===" in session.calls[0]["json"]["messages"][1]["content"]
    assert "> GPT: OK (1) | Grok: NO_CREDITS | Groq: OK (1)" in markdown
    assert "no credits" in markdown
    (subject, body), = sender.sent
    assert body == markdown
    assert subject.endswith("[GPT: OK (1) | Grok: NO_CREDITS | Groq: OK (1)]")


def test_total_outage_raises_before_rendering(feeds):
    session = FakeSession(by_host(*[FakeResponse(500, {"error": "down"})] * 3))
    sender = RecordingSender()
    orch = Orchestrator(RunConfig(), build_provider_configs(SETTINGS), session=session, email_sender=sender)
    with pytest.raises(TotalProviderFailure):
        orch.run([])
    assert len(session.calls) == 3
    assert sender.sent == []


def test_no_tickers_exits_quietly(monkeypatch):
    monkeypatch.setattr(
        orchestrator_module,
        "fetch_all_feeds",
        lambda sources, **kw: [RSSItem(title="Markets drift", link="https://x.com", description=None)],
    )
    session = FakeSession([])
    orch = Orchestrator(RunConfig(), build_provider_configs(SETTINGS), session=session, email_sender=RecordingSender())
    assert orch.run([]) is None
    assert session.calls == []


def test_dry_run_skips_providers_and_email(feeds, tmp_path):
    session = FakeSession([])
    sender = RecordingSender()
    out = tmp_path / "reports" / "daily.md"
    orch = Orchestrator(
        RunConfig(dry_run=True),
        build_provider_configs(SETTINGS),
        session=session,
        email_sender=sender,
        output_path=out,
    )
    markdown = orch.run([])
    assert session.calls == []
    assert sender.sent == []
    assert out.read_text(encoding="utf-8") == markdown
    assert "GPT: DRY_RUN | Grok: DRY_RUN | Groq: DRY_RUN" in markdown
    assert "| GPT   | NVDA, AMD |" in markdown


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("OPENAI_API_KEY", "XAI_API_KEY", "GROQ_API_KEY", "HEURISTIC_FALLBACK", "GROK_HEURISTIC_FALLBACK"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOG_OUTPUT", "stdout")


def test_cli_dry_run_writes_report(clean_env, feeds, tmp_path):
    out = tmp_path / "report.md"
    assert cli.main(["--dry-run", "--no-email", "--output", str(out)]) == 0
    assert out.read_text(encoding="utf-8").startswith("# Daily Top 10")


def test_cli_without_any_key_fails(clean_env, feeds):
    assert cli.main(["--no-email"]) == 1


def test_cli_bad_config_fails(clean_env, tmp_path):
    assert cli.main(["--config", str(tmp_path / "missing.yaml")]) == 1


def test_cli_probe_without_key(clean_env):
    assert cli.main(["--probe", "grok"]) == 2
