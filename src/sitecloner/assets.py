"""Downloading of embedded assets into category-scoped directories."""

import logging
from dataclasses import dataclass

from .context import CrawlContext
from .core import FetchError
from .paths import Category, asset_path
from .urls import is_fetchable, same_host

logger = logging.getLogger(__name__)


class OffSiteRedirect(Exception):
    """An asset request was redirected away from the seed host."""

    def __init__(self, url: str, final_url: str):
        self.url = url
        self.final_url = final_url
        super().__init__(f"{url} redirected to {final_url}")


@dataclass(frozen=True)
class AssetRef:
    """An asset reference found while parsing a page, with its resolved URL."""

    page_url: str
    ref: str
    category: Category
    url: str


class AssetMaterializer:
    """Fetches asset bytes and writes them under the resources directory."""

    def __init__(self, ctx: CrawlContext):
        self.ctx = ctx

    def local_path(self, url: str, category: Category) -> str:
        """Relative output path the asset at ``url`` is stored under."""
        return asset_path(
            url,
            category,
            resources_dir=self.ctx.resources_dir,
            unique=self.ctx.unique_asset_names,
        )

    def in_scope(self, url: str) -> bool:
        """Whether an absolute asset URL may be downloaded at all."""
        return is_fetchable(url) and same_host(url, self.ctx.seed_url)

    def fetch(self, category: Category, url: str) -> str:
        """Download ``url`` and write it to disk.

        Returns the relative path written. Raises FetchError or OSError, and
        OffSiteRedirect when the final URL is on another host (nothing is written).
        """
        response = self.ctx.fetcher.get(url)
        if not same_host(response.url, self.ctx.seed_url):
            raise OffSiteRedirect(url, response.url)

        relative = self.local_path(url, category)
        target = self.ctx.output_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(response.content)
        return relative

    def materialize(self, asset: AssetRef) -> str | None:
        """Task entry point: fetch one asset, reporting rather than raising failures."""
        url = asset.url
        if url.lower().startswith("data:") or not self.in_scope(url):
            self.ctx.stats.incr("assets_skipped")
            return None

        try:
            relative = self.fetch(asset.category, url)
        except OffSiteRedirect as e:
            logger.warning("Resource redirected off site: %s -> %s", url, e.final_url)
            self.ctx.stats.incr("assets_skipped")
            self.ctx.record(
                kind="asset",
                url=url,
                category=asset.category.value,
                source=asset.page_url,
                skipped=f"redirected to {e.final_url}",
            )
            return None
        except FetchError as e:
            logger.warning("Failed to fetch resource %s: %s", url, e.reason)
            self._failed(asset, e.reason, e.status)
            return None
        except OSError as e:
            logger.warning("Failed to write resource %s: %s", url, e)
            self._failed(asset, str(e))
            return None

        logger.info("Downloaded resource: %s -> %s", url, relative)
        self.ctx.stats.incr("assets_written")
        self.ctx.record(kind="asset", url=url, category=asset.category.value, path=relative, source=asset.page_url)
        return relative

    def _failed(self, asset: AssetRef, error: str, status: int | None = None):
        self.ctx.stats.incr("assets_failed")
        self.ctx.record(
            kind="asset",
            url=asset.url,
            category=asset.category.value,
            source=asset.page_url,
            status=status,
            error=error,
        )
