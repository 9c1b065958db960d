"""Protocol definitions for fetcher components."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class Response:
    """HTTP response container."""

    url: str
    status: int
    content: bytes
    headers: dict[str, str]

    @property
    def text(self) -> str:
        """Decode content as UTF-8."""
        return self.content.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status < 300

    @property
    def is_html(self) -> bool:
        """True unless the server declared a non-HTML content type."""
        content_type = self.headers.get("content-type", "")
        if not content_type:
            return True
        return "html" in content_type.lower()


class Fetcher(Protocol):
    """Protocol for URL fetchers."""

    def fetch(self, url: str) -> Response:
        """Fetch a URL and return the response."""
        ...

    def get(self, url: str) -> Response:
        """Fetch a URL, raising FetchError unless it answered 2xx."""
        ...
