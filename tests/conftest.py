"""Pytest shared fixtures: network guard rails and a scripted Avidbase backend."""
import json
import pathlib
import sys
import time
from types import SimpleNamespace

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests
from requests.structures import CaseInsensitiveDict

DEV_BASE_URL = "https://dev-api.avidbase.com"


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, url: str, status_code: int = 200, payload=None, text=None, headers=None):
        self.url = url
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)


class FakeAvidbase:
    """Scripted Avidbase API.

    Responses registered for a (method, path) pair are served in order; the
    last one keeps being served. Every call is recorded in ``calls``.
    """

    def __init__(self, base_url: str = DEV_BASE_URL):
        self.base_url = base_url
        self.calls = []
        self._routes = {}

    def add(self, method, path, status=200, payload=None, text=None, token=None, error=None, delay=0.0):
        headers = {"Access-Token": token} if token else {}
        entry = SimpleNamespace(status=status, payload=payload, text=text, headers=headers, error=error,
                                delay=delay)
        self._routes.setdefault((method.upper(), self.base_url + path), []).append(entry)

    def add_token(self, account="acct-1", token="machine-1", status=200, delay=0.0):
        self.add("POST", f"/v1/account/{account}/token", status=status, token=token, delay=delay)

    def calls_to(self, method, path):
        url = self.base_url + path
        return [call for call in self.calls if call.method == method.upper() and call.url == url]

    def _handler(self, method):
        def handle(url, *args, **kwargs):
            body = kwargs.get("data")
            call = SimpleNamespace(
                method=method,
                url=url,
                headers=dict(kwargs.get("headers") or {}),
                json=json.loads(body) if body else None,
                kwargs=kwargs,
            )
            self.calls.append(call)
            queue = self._routes.get((method, url))
            if not queue:
                raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
            entry = queue.pop(0) if len(queue) > 1 else queue[0]
            if entry.delay:
                time.sleep(entry.delay)
            if entry.error is not None:
                raise entry.error
            return StubResponse(url, entry.status, entry.payload, entry.text, entry.headers)
        return handle

    def install(self, monkeypatch):
        for method in ("GET", "POST", "PUT"):
            monkeypatch.setattr(requests, method.lower(), self._handler(method))
        return self


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from hitting the live Avidbase API."""

    def _blocked(method):
        def _call(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _call

    for method in ("get", "post", "put", "delete", "patch"):
        monkeypatch.setattr(requests, method, _blocked(method.upper()))


@pytest.fixture()
def backend(monkeypatch):
    """Scripted Avidbase backend installed over requests.get/post/put."""
    return FakeAvidbase().install(monkeypatch)


@pytest.fixture()
def client():
    """Development client for account acct-1."""
    from avidbase.core.identity import initialize

    return initialize("acct-1", "key-1", environment="development")


@pytest.fixture()
def alice_payload():
    return {
        "id": "u-1",
        "first_name": "Alice",
        "last_name": "Wonder",
        "username": "alice",
        "email": "alice@example.com",
        "country": "NL",
        "status": "active",
        "data": {"team": "blue"},
        "created_at": "2024-03-01T10:00:00Z",
    }
