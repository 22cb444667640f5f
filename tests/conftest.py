import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

import tokkit
import tokkit.http


@pytest.fixture
def fixture_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture(fixture_dir):
    def _loader(name: str) -> Any:
        with open(fixture_dir / name, "r", encoding="utf-8") as f:
            return json.load(f)
    return _loader


@pytest.fixture
def api_item(load_fixture):
    return load_fixture("api_item.json")


@pytest.fixture
def web_item(load_fixture):
    return load_fixture("web_item.json")


@pytest.fixture
def image_item(load_fixture):
    return load_fixture("image_item.json")


def universal_page(item: dict) -> str:
    data = {"__DEFAULT_SCOPE__": {"webapp.video-detail": {"itemInfo": {"itemStruct": item}}}}
    return (
        "<html><head>"
        f'<script id="__UNIVERSAL_DATA_FOR_REHYDRATION__" type="application/json">{json.dumps(data)}</script>'
        "</head><body></body></html>"
    )


def sigi_page(item: dict) -> str:
    data = {"ItemModule": {str(item.get("id", "0")): item}}
    return f'<html><script id="__SIGI_STATE__" type="application/json">{json.dumps(data)}</script></html>'


def next_page(item: dict) -> str:
    data = {"props": {"pageProps": {"itemInfo": {"itemStruct": item}}}}
    return f'<html><script id="__NEXT_DATA__" type="application/json">{json.dumps(data)}</script></html>'


def embed_page(item: dict) -> str:
    data = {"itemInfo": {"itemStruct": item}}
    return f"<html><body><script>window._SSR_HYDRATED_DATA={json.dumps(data)}</script></body></html>"


def html_response(url: str, text: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", url), text=text)


def json_response(url: str, data: Any, status: int = 200) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", url), json=data)


class MockHTTPXClient:
    """Routes by (method, url). A route value may be a Response or an exception to raise."""

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None):
        self.routes = routes or {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        self.headers = {}
        self.cookies = httpx.Cookies()

    def request(self, method: str, url: str, **kwargs):
        key = (method.upper(), url)
        self.calls.append(key)
        if key in self.routes:
            route = self.routes[key]
            if isinstance(route, Exception):
                raise route
            return route
        return httpx.Response(404, request=httpx.Request(method, url), json={})

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def close(self):
        self.closed = True


@pytest.fixture
def mock_httpx_client(monkeypatch):
    def _factory(routes=None):
        inst = MockHTTPXClient(routes=routes)
        tokkit.http._client_pool.clear()
        monkeypatch.setattr(tokkit.http.httpx, "Client", lambda *a, **k: inst)
        return inst

    yield _factory
    tokkit.http._client_pool.clear()


@pytest.fixture
def pages():
    """Page and response builders shared by the strategy / scraper tests."""
    return SimpleNamespace(
        universal=universal_page,
        sigi=sigi_page,
        next=next_page,
        embed=embed_page,
        html=html_response,
        json=json_response,
    )
