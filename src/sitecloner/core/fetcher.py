"""HTTP fetcher implementation using httpx."""

import threading

import httpx

from .protocols import Response


class FetchError(Exception):
    """A GET did not produce a usable 2xx response."""

    def __init__(self, url: str, reason: str, status: int | None = None):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class HttpFetcher:
    """Thread-safe HTTP fetcher using httpx with connection reuse."""

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str | None = None,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        transport: httpx.BaseTransport | None = None,
    ):
        self.timeout = httpx.Timeout(timeout)
        self.user_agent = user_agent
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self.transport = transport
        self._client: httpx.Client | None = None
        self._lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client with double-checked locking."""
        if self._client is None:
            with self._lock:
                if self._client is None:
                    headers = {"User-Agent": self.user_agent} if self.user_agent else None
                    self._client = httpx.Client(
                        timeout=self.timeout,
                        limits=self.limits,
                        headers=headers,
                        follow_redirects=True,
                        transport=self.transport,
                    )
        return self._client

    def fetch(self, url: str) -> Response:
        """Fetch a URL and return the fully buffered response."""
        client = self._get_client()
        resp = client.get(url)
        return Response(
            url=str(resp.url),
            status=resp.status_code,
            content=resp.content,
            headers=dict(resp.headers),
        )

    def get(self, url: str) -> Response:
        """Fetch a URL, raising FetchError unless it answered 2xx."""
        try:
            response = self.fetch(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
        if not response.ok:
            raise FetchError(url, f"status {response.status}", status=response.status)
        return response

    def close(self):
        """Close the HTTP client."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
