import json
import sys
from pathlib import Path

import pytest


# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


class _FakeResponse:
    def __init__(self, status_code=200, text="", payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else text

    def json(self):
        if self._payload is not None:
            return self._payload
        return json.loads(self.text)


class FakeHttp:
    """Async stand-in for ``catalog.http.fetch`` with per-URL response queues.

    The last queued response for a URL is repeated once the queue runs down.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def respond(self, url, status_code=200, *, text="", json=None):
        self.routes.setdefault(url, []).append(_FakeResponse(status_code, text, json))
        return self

    def calls_to(self, url):
        return [call for call in self.calls if call["url"] == url]

    async def fetch(self, url, *, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers or {}})
        queue = self.routes.get(url)
        if not queue:
            raise AssertionError(f"unexpected request to {url}")
        return queue.pop(0) if len(queue) > 1 else queue[0]


@pytest.fixture
def fake_http():
    return FakeHttp()
