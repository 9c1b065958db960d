"""Processing of a single HTML page: fetch, rewrite, write, fan out."""

import logging

from selectolax.parser import HTMLParser, Node

from .assets import AssetMaterializer, AssetRef
from .context import CrawlContext, CrawlTarget
from .core import FetchError
from .paths import Category, page_path, relative_reference
from .urls import MalformedReference, is_excluded, is_fetchable, normalize_url, resolve, same_host

logger = logging.getLogger(__name__)

# (selector, attribute, category)
ASSET_SELECTORS = (
    ("link[href]", "href", Category.CSS),
    ("script[src]", "src", Category.JS),
    ("img[src]", "src", Category.IMG),
)


def is_stylesheet(node: Node) -> bool:
    rel = node.attributes.get("rel") or ""
    return "stylesheet" in rel.lower().split()


def parse_html(text: str) -> HTMLParser:
    """Parse a document, raising ValueError if nothing usable came out."""
    try:
        tree = HTMLParser(text)
    except (RuntimeError, TypeError) as e:
        raise ValueError(str(e)) from e
    if tree.root is None:
        raise ValueError("empty document")
    return tree


class PageProcessor:
    """Visits pages of one crawl. A single instance is shared by all workers."""

    def __init__(self, ctx: CrawlContext, assets: AssetMaterializer | None = None):
        self.ctx = ctx
        self.assets = assets or AssetMaterializer(ctx)

    def dispatch(self, target: CrawlTarget):
        """Schedule a visit of ``target`` on the worker pool."""
        self.ctx.workgroup.spawn(self.process, target)

    def process(self, target: CrawlTarget) -> bool:
        """Visit one page. Returns True when the page was written locally."""
        url = target.url

        if not self.ctx.visited.claim(normalize_url(url)):
            return False

        if not same_host(url, self.ctx.seed_url):
            logger.debug("Out of scope for %s: %s", self.ctx.seed_host, url)
            self.ctx.stats.incr("pages_skipped")
            return False

        try:
            response = self.ctx.fetcher.get(url)
        except FetchError as e:
            logger.warning("Failed to fetch %s: %s", url, e.reason)
            self._failed(target, e.reason, e.status)
            return False

        if not same_host(response.url, self.ctx.seed_url):
            logger.warning("Redirected off site: %s -> %s", url, response.url)
            self.ctx.stats.incr("pages_skipped")
            return False

        local = page_path(url)
        if not response.is_html:
            return self._write(target, local, response.content)

        try:
            tree = parse_html(response.text)
        except ValueError as e:
            logger.warning("Failed to parse HTML document for %s: %s", url, e)
            self._failed(target, f"parse error: {e}")
            return False

        dispatched = self.rewrite_assets(tree, url, local)
        logger.debug("Dispatched %d assets from %s", dispatched, url)

        written = self._write(target, local, (tree.html or "").encode("utf-8"))

        if target.depth < self.ctx.max_depth:
            self.follow_links(tree, target)

        return written

    def rewrite_assets(self, tree: HTMLParser, page_url: str, local: str) -> int:
        """Point asset references at their local copies and queue their download.

        The new reference is known from the URL alone, so it is written into
        the document whether or not the download later succeeds. References
        that will not be downloaded are left untouched.
        """
        count = 0
        for selector, attr, category in ASSET_SELECTORS:
            for node in tree.css(selector):
                if category is Category.CSS and not is_stylesheet(node):
                    continue

                ref = node.attributes.get(attr)
                if not ref or is_excluded(ref):
                    continue
                try:
                    url = resolve(page_url, ref)
                except MalformedReference as e:
                    logger.warning("Skipping asset on %s: %s", page_url, e)
                    continue
                if not self.assets.in_scope(url):
                    continue

                self.ctx.workgroup.spawn(self.assets.materialize, AssetRef(page_url, ref, category, url))
                node.attrs[attr] = relative_reference(local, self.assets.local_path(url, category))
                count += 1
        return count

    def follow_links(self, tree: HTMLParser, target: CrawlTarget) -> int:
        """Queue same-site hyperlinks one level deeper."""
        count = 0
        for node in tree.css("a[href]"):
            href = node.attributes.get("href")
            if not href or is_excluded(href):
                continue
            try:
                url = resolve(target.url, href)
            except MalformedReference as e:
                logger.debug("Skipping link on %s: %s", target.url, e)
                continue
            if not is_fetchable(url) or not same_host(url, self.ctx.seed_url):
                continue

            self.dispatch(CrawlTarget(url=url, depth=target.depth + 1, source_url=target.url))
            count += 1
        return count

    def _write(self, target: CrawlTarget, local: str, content: bytes) -> bool:
        path = self.ctx.output_dir / local
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.warning("Failed to write HTML file for %s: %s", target.url, e)
            self._failed(target, f"write error: {e}")
            return False

        logger.info("Downloaded: %s -> %s", target.url, local)
        self.ctx.stats.incr("pages_written")
        self.ctx.record(kind="page", url=target.url, path=local, depth=target.depth, source=target.source_url)
        return True

    def _failed(self, target: CrawlTarget, error: str, status: int | None = None):
        self.ctx.stats.incr("pages_failed")
        self.ctx.record(
            kind="page",
            url=target.url,
            depth=target.depth,
            source=target.source_url,
            status=status,
            error=error,
        )
