# Make the repository root importable during tests
import json
import sys
from pathlib import Path

import requests

# tests/ is one level below the repo root
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from bullet_catalyst.models import NewsDocument  # noqa: E402


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text
        self.encoding = "utf-8"
        self.closed = False

    @property
    def text(self):
        if self._text is not None:
            return self._text
        return json.dumps(self._payload) if self._payload is not None else ""

    @property
    def content(self):
        return self.text.encode(self.encoding)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload

    def iter_content(self, chunk_size=1):
        body = self.text.encode(self.encoding)
        for i in range(0, len(body), chunk_size):
            yield body[i : i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for ``requests.Session``; replies come from a list or a callable."""

    def __init__(self, replies):
        self.replies = replies
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        return self._next(url, None)

    def post(self, url, json=None, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout, "stream": stream})
        return self._next(url, json)

    def _next(self, url, body):
        if callable(self.replies):
            reply = self.replies(url, body)
        else:
            reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def chat_reply(content, status_code=200):
    return FakeResponse(status_code, {"choices": [{"message": {"content": content}}]})


def results_reply(results, status_code=200):
    return chat_reply(json.dumps({"results": results}), status_code)


def make_doc(title, snippet="", tickers=(), url="https://www.cnbc.com/a", source="cnbc.com"):
    return NewsDocument(title=title, url=url, source=source, snippet=snippet, tickers=tuple(tickers))
