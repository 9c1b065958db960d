"""Shared state of a single crawl run."""

import threading
from dataclasses import dataclass, field
from pathlib import Path

from .core import Fetcher
from .output import ManifestWriter
from .urls import host_of
from .visited import VisitedRegistry
from .workgroup import WorkGroup


@dataclass
class CrawlTarget:
    """A page to visit and its link distance from the seed."""

    url: str
    depth: int
    source_url: str | None = None


class CrawlStats:
    """Thread-safe outcome counters."""

    FIELDS = (
        "pages_written",
        "pages_failed",
        "pages_skipped",
        "assets_written",
        "assets_failed",
        "assets_skipped",
    )

    def __init__(self):
        self._lock = threading.Lock()
        self._counts = dict.fromkeys(self.FIELDS, 0)

    def incr(self, name: str, amount: int = 1):
        if name not in self._counts:
            raise KeyError(name)
        with self._lock:
            self._counts[name] += amount

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


@dataclass
class CrawlContext:
    """State owned jointly by every task of one crawl."""

    seed_url: str
    output_dir: Path
    fetcher: Fetcher
    workgroup: WorkGroup
    max_depth: int = 1
    resources_dir: str = "resources"
    unique_asset_names: bool = True
    visited: VisitedRegistry = field(default_factory=VisitedRegistry)
    stats: CrawlStats = field(default_factory=CrawlStats)
    manifest: ManifestWriter | None = None

    @property
    def seed_host(self) -> str:
        return host_of(self.seed_url)

    def record(self, **record):
        """Append an outcome to the manifest, if one is being written."""
        if self.manifest is not None:
            self.manifest.write_one(record)
