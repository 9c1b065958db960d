"""Registry of URLs already claimed by a page visit."""

import threading


class VisitedRegistry:
    """Append-only set of canonical URLs with an atomic claim."""

    def __init__(self):
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def claim(self, url: str) -> bool:
        """Record ``url``. Returns True only for the first caller."""
        with self._lock:
            if url in self._seen:
                return False
            self._seen.add(url)
            return True

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
