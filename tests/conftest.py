"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Provide an in-memory transport double with scripted responses
  - Provide stores and a fully wired TimeClockApp per test

Notes:
  - No test touches the network or the user's home directory
"""

import asyncio
from collections import defaultdict

import pytest

from timeclock_core.app import LogNavigator, TimeClockApp
from timeclock_core.constants import KEY_AUTH_TOKEN, KEY_USER_INFO
from timeclock_core.errors import HttpStatusFailure
from timeclock_core.http_client import ApiResponse, _server_message
from timeclock_core.location import no_location
from timeclock_core.storage import MemoryStore


class FakeTransport:
    """
    Stands in for TransportClient. Outcomes are queued per (method, path):
    either (status, body) or an exception instance to raise. Setting
    `gate` to an asyncio.Event holds every request until it is set.
    """

    def __init__(self):
        self.token_source = None
        self.calls = []
        self.gate = None
        self.resets = 0
        self.closed = False
        self._outcomes = defaultdict(list)
        self._observers = []

    def add_observer(self, observer):
        self._observers.append(observer)

    def queue(self, method, path, data=None, status=200):
        self._outcomes[(method.upper(), path)].append((status, data))

    def fail(self, method, path, error):
        self._outcomes[(method.upper(), path)].append(error)

    def calls_to(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    async def wait_for_calls(self, count=1):
        """Yield to the loop until `count` requests have been issued."""
        for _ in range(1000):
            if len(self.calls) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} request(s), saw {len(self.calls)}")

    def reset(self):
        self.resets += 1

    def close(self):
        self.closed = True

    async def send(self, method, path, *, params=None, json=None, headers=None,
                   timeout=None, auth=True):
        method = method.upper()
        token = self.token_source() if (auth and self.token_source) else None
        authenticated = bool(token) or bool(headers and "Authorization" in headers)
        self.calls.append({
            "method": method, "path": path, "params": params, "json": json,
            "headers": headers, "authenticated": authenticated, "token": token,
        })
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

        queued = self._outcomes[(method, path)]
        assert queued, f"unexpected request {method} {path}"
        outcome = queued.pop(0)
        if isinstance(outcome, Exception):
            raise outcome

        status, data = outcome
        response = ApiResponse(method, path, status, data, authenticated)
        for observer in self._observers:
            observer(response)
        if status >= 400:
            raise HttpStatusFailure(status, _server_message(data), method, path)
        return response

    async def get(self, path, **kwargs):
        return await self.send("GET", path, **kwargs)

    async def post(self, path, **kwargs):
        return await self.send("POST", path, **kwargs)

    async def patch(self, path, **kwargs):
        return await self.send("PATCH", path, **kwargs)

    async def delete(self, path, **kwargs):
        return await self.send("DELETE", path, **kwargs)


USER = {"id": "u-1", "role": "employee", "name": "Li Wei"}


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def signed_in_store():
    return MemoryStore({KEY_AUTH_TOKEN: "tok-123", KEY_USER_INFO: dict(USER)})


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def navigator():
    return LogNavigator()


def make_app(store, transport, navigator, location_provider=no_location):
    return TimeClockApp(
        config={"apiUrl": "https://api.test/v1", "timeoutSec": 10, "location": None},
        store=store,
        transport=transport,
        navigator=navigator,
        location_provider=location_provider,
    )


@pytest.fixture
def app_factory(transport, navigator):
    def factory(store, location_provider=no_location):
        return make_app(store, transport, navigator, location_provider)
    return factory


@pytest.fixture
def app(signed_in_store, transport, navigator):
    """Wired app with a restored (not yet verified) session."""
    app = make_app(signed_in_store, transport, navigator)
    app.session.restore()
    app.records.load()
    return app
