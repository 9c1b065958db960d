"""Shared fixtures: an in-memory website served through httpx.MockTransport."""

import threading
import time
from urllib.parse import urlsplit

import httpx
import pytest

from sitecloner.core import HttpFetcher
from sitecloner.crawl import MirrorEngine

SEED = "http://example.com/"


class FakeSite:
    """Routes keyed by (host, path). Unknown routes answer 404."""

    def __init__(self, delay: float = 0.0):
        self.routes: dict[tuple[str, str], tuple[int, bytes, dict]] = {}
        self.requests: list[str] = []
        self.completed: list[str] = []
        self.delay = delay
        self._lock = threading.Lock()
        self.transport = httpx.MockTransport(self.handle)

    def add(self, url: str, body: bytes | str, status: int = 200, content_type: str = "text/html; charset=utf-8"):
        parts = urlsplit(url)
        content = body.encode("utf-8") if isinstance(body, str) else body
        self.routes[(parts.hostname, parts.path or "/")] = (status, content, {"content-type": content_type})

    def add_page(self, url: str, html: str):
        self.add(url, html)

    def add_asset(self, url: str, body: bytes = b"asset", content_type: str = "application/octet-stream"):
        self.add(url, body, content_type=content_type)

    def add_redirect(self, url: str, location: str):
        parts = urlsplit(url)
        self.routes[(parts.hostname, parts.path or "/")] = (302, b"", {"location": location})

    def handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(str(request.url))
        if self.delay:
            time.sleep(self.delay)
        route = self.routes.get((request.url.host, request.url.path))
        with self._lock:
            self.completed.append(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        status, content, headers = route
        return httpx.Response(status, content=content, headers=headers)

    def requested_paths(self, host: str = "example.com") -> list[str]:
        with self._lock:
            return [urlsplit(u).path for u in self.requests if urlsplit(u).hostname == host]

    def completed_paths(self) -> list[str]:
        with self._lock:
            return [urlsplit(u).path for u in self.completed]

    def requested_hosts(self) -> set[str]:
        with self._lock:
            return {urlsplit(u).hostname for u in self.requests}

    def fetcher(self) -> HttpFetcher:
        return HttpFetcher(timeout=5.0, transport=self.transport)


@pytest.fixture
def site_factory():
    return FakeSite


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def make_engine(site, out_dir):
    def _make(max_depth: int = 1, start_url: str = SEED, fetcher=None, **kwargs) -> MirrorEngine:
        return MirrorEngine(
            start_url=start_url,
            output_dir=out_dir,
            max_depth=max_depth,
            fetcher=fetcher or site.fetcher(),
            max_workers=8,
            **kwargs,
        )

    return _make
