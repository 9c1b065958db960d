"""Crawl orchestration: seed, fan out, wait for quiescence."""

import logging
import time
from pathlib import Path
from urllib.parse import urlparse

import typer

from .config import settings
from .context import CrawlContext, CrawlTarget
from .core import Fetcher, HttpFetcher
from .output import ManifestWriter
from .page import PageProcessor
from .paths import Category
from .urls import is_fetchable
from .workgroup import WorkGroup

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """The run cannot start; nothing has been fetched."""


def validate_seed(url: str | None) -> str:
    """Check the seed URL is an absolute http(s) URL."""
    if not url:
        raise StartupError("Please provide a URL to clone using --url or as the first argument")
    url = url.strip()
    try:
        urlparse(url).port
    except ValueError as e:
        raise StartupError(f"Invalid URL: {url}: {e}") from e
    if not is_fetchable(url):
        raise StartupError(f"Invalid URL: {url}")
    return url


def prepare_output(output_dir: str | Path, resources_dir: str) -> Path:
    """Create the output root and one directory per asset category."""
    root = Path(output_dir)
    try:
        root.mkdir(parents=True, exist_ok=True)
        for category in Category:
            (root / resources_dir / category.value).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StartupError(f"Failed to create output directory {root}: {e}") from e
    return root


class MirrorEngine:
    """Owns the shared crawl state and runs a crawl to completion."""

    def __init__(
        self,
        start_url: str,
        output_dir: str | Path = settings.output_dir,
        max_depth: int = settings.max_depth,
        resources_dir: str = settings.resources_dir,
        unique_asset_names: bool = settings.unique_asset_names,
        max_workers: int = settings.max_workers,
        fetcher: Fetcher | None = None,
        manifest: ManifestWriter | None = None,
    ):
        if max_depth < 0:
            raise StartupError(f"Maximum depth must be non-negative, got {max_depth}")

        self.start_url = validate_seed(start_url)
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpFetcher(
            timeout=settings.timeout,
            user_agent=settings.user_agent,
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        )
        self.ctx = CrawlContext(
            seed_url=self.start_url,
            output_dir=prepare_output(output_dir, resources_dir),
            fetcher=self.fetcher,
            workgroup=WorkGroup(max_workers=max_workers),
            max_depth=max_depth,
            resources_dir=resources_dir,
            unique_asset_names=unique_asset_names,
            manifest=manifest,
        )
        self.processor = PageProcessor(self.ctx)

    def crawl(self) -> dict[str, int]:
        """Run the crawl and return the outcome counters."""
        self.processor.dispatch(CrawlTarget(url=self.start_url, depth=0))
        try:
            self.ctx.workgroup.wait()
        finally:
            self.ctx.workgroup.shutdown()
            if self._owns_fetcher:
                self.fetcher.close()
        logger.debug("Crawl of %s quiesced after %d units", self.start_url, self.ctx.workgroup.spawned)
        return self.ctx.stats.as_dict()


def run_mirror(
    start_url: str,
    output_dir: str = settings.output_dir,
    max_depth: int = settings.max_depth,
    resources_dir: str = settings.resources_dir,
    unique_asset_names: bool = settings.unique_asset_names,
    max_workers: int = settings.max_workers,
    manifest_path: str | None = None,
) -> dict[str, int]:
    """Mirror a site and print a summary. Raises StartupError before any fetch."""
    start_url = validate_seed(start_url)
    typer.echo(f"Starting to clone {start_url} into {output_dir}")
    typer.echo(f"Max depth: {max_depth}, Workers: {max_workers}")

    def _run(manifest: ManifestWriter | None) -> dict[str, int]:
        engine = MirrorEngine(
            start_url=start_url,
            output_dir=output_dir,
            max_depth=max_depth,
            resources_dir=resources_dir,
            unique_asset_names=unique_asset_names,
            max_workers=max_workers,
            manifest=manifest,
        )
        return engine.crawl()

    start_time = time.time()
    if manifest_path:
        try:
            writer = ManifestWriter(manifest_path).open()
        except OSError as e:
            raise StartupError(f"Failed to open manifest {manifest_path}: {e}") from e
        with writer as manifest:
            stats = _run(manifest)
    else:
        stats = _run(None)
    elapsed = time.time() - start_time

    typer.echo(
        f"\nWebsite cloning completed in {elapsed:.1f}s: "
        f"{stats['pages_written']} pages, {stats['assets_written']} assets"
    )
    typer.echo(f"Failures: {stats['pages_failed']} pages, {stats['assets_failed']} assets")
    if manifest_path:
        typer.echo(f"Manifest saved to {manifest_path}")
    return stats
