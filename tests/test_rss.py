from conftest import FakeResponse, FakeSession

from bullet_catalyst.fetchers import fetch_all_feeds, fetch_rss_entries
from bullet_catalyst.models import Source

RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel><title>Markets</title>
<item><title>Nvidia beats estimates</title><link>https://www.cnbc.com/nvda</link>
<description>&lt;p&gt;Shares of NVDA rose.&lt;/p&gt;</description></item>
<item><title>AMD faces lawsuit</title><link>https://www.cnbc.com/amd</link></item>
</channel></rss>"""


def test_entries_fetched_through_session():
    session = FakeSession([FakeResponse(200, text=RSS)])
    source = Source(name="CNBC", url="https://www.cnbc.com/rss", headers={"X-Test": "1"})

    items = fetch_rss_entries(source, timeout=5, session=session)

    assert [i.title for i in items] == ["Nvidia beats estimates", "AMD faces lawsuit"]
    assert items[0].link == "https://www.cnbc.com/nvda"
    assert "NVDA" in items[0].description
    call = session.calls[0]
    assert call["url"] == "https://www.cnbc.com/rss"
    assert call["timeout"] == 5
    assert call["headers"]["X-Test"] == "1"
    assert "User-Agent" in call["headers"]


def test_failing_feed_is_skipped():
    session = FakeSession([FakeResponse(503, text="down"), FakeResponse(200, text=RSS)])
    sources = [Source(name="Down", url="https://down.example/rss"), Source(name="Up", url="https://up.example/rss")]

    items = fetch_all_feeds(sources, timeout=5, delay=0, session=session)

    assert [c["url"] for c in session.calls] == ["https://down.example/rss", "https://up.example/rss"]
    assert len(items) == 2
