"""Shared pytest fixtures for the hub tests."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Keep log files and the default data dir out of the working tree.
_SCRATCH = tempfile.mkdtemp(prefix="storehub-tests-")
os.environ.setdefault("STOREHUB_LOG_DIR", os.path.join(_SCRATCH, "logs"))
os.environ.setdefault("STOREHUB_DATA_DIR", os.path.join(_SCRATCH, "data"))

import pytest
import requests

from backend.app.catalog.service import CatalogService
from backend.app.orders.service import OrderService
from backend.app.storage.records import MemoryRecordStore
from backend.app.stores.registry import StoreRegistry


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class FakeHttp:
    """
    Stand-in for the `requests` module. Unknown URLs fail like an unreachable
    host would.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def route(self, method, url, result):
        self.routes[(method, url)] = result

    def _dispatch(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.routes.get((method, url))
        if result is None:
            raise requests.ConnectionError(f"Connection refused: {url}")
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, **kwargs)

    def calls_to(self, method, url):
        return [c for c in self.calls if c[0] == method and c[1] == url]


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def records():
    return MemoryRecordStore()


@pytest.fixture
def registry(records, http, clock):
    return StoreRegistry(records, liveness=timedelta(minutes=10), http=http, timeout=5.0, clock=clock)


@pytest.fixture
def catalog(records, registry, http):
    return CatalogService(records, registry, http=http, timeout=5.0)


@pytest.fixture
def orders(records, registry, http, clock):
    return OrderService(records, registry, http=http, timeout=5.0, clock=clock)


@pytest.fixture
def client(records, http, clock):
    from fastapi.testclient import TestClient

    from backend.app.deps import get_clock, get_http, get_record_store
    from backend.app.main import app

    app.dependency_overrides[get_record_store] = lambda: records
    app.dependency_overrides[get_http] = lambda: http
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_store(registry):
    """Register a store without the connectivity check."""

    def _make(store_id, name=None, url=None, **extra):
        info = {
            "storeId": store_id,
            "name": name or f"Store {store_id}",
            "url": url or f"http://{store_id.lower()}.local:3000",
            **extra,
        }
        return registry.register(info, test_connectivity=False).store

    return _make
