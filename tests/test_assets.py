"""Tests for the asset materializer."""

import json

import pytest

from sitecloner.assets import AssetRef, OffSiteRedirect
from sitecloner.core import FetchError
from sitecloner.output import ManifestWriter
from sitecloner.paths import Category

PAGE = "http://example.com/blog/post.html"


@pytest.fixture
def materializer(make_engine):
    return make_engine(max_depth=0).processor.assets


def asset(url: str, category: Category = Category.IMG, ref: str | None = None) -> AssetRef:
    return AssetRef(PAGE, ref or url, category, url)


class TestFetch:
    def test_writes_under_category_dir(self, site, out_dir, materializer):
        site.add_asset("http://example.com/static/site.css", b"body{}")

        relative = materializer.fetch(Category.CSS, "http://example.com/static/site.css")

        assert relative.startswith("resources/css/site-")
        assert (out_dir / relative).read_bytes() == b"body{}"

    def test_raises_on_error_status(self, materializer):
        with pytest.raises(FetchError):
            materializer.fetch(Category.IMG, "http://example.com/missing.png")

    def test_flat_names(self, site, out_dir, make_engine):
        site.add_asset("http://example.com/a/b/app.js?v=1", b"1;")
        assets = make_engine(max_depth=0, unique_asset_names=False).processor.assets

        assert assets.fetch(Category.JS, "http://example.com/a/b/app.js?v=1") == "resources/js/app.js_v_1"
        assert (out_dir / "resources" / "js" / "app.js_v_1").read_bytes() == b"1;"

    def test_same_host_redirect_followed(self, site, out_dir, materializer):
        site.add_redirect("http://example.com/old.png", "http://example.com/new.png")
        site.add_asset("http://example.com/new.png", b"png")

        relative = materializer.fetch(Category.IMG, "http://example.com/old.png")

        assert relative == materializer.local_path("http://example.com/old.png", Category.IMG)
        assert (out_dir / relative).read_bytes() == b"png"

    def test_off_site_redirect_raises(self, site, out_dir, materializer):
        site.add_redirect("http://example.com/logo.png", "http://cdn.other.com/logo.png")
        site.add_asset("http://cdn.other.com/logo.png", b"png")

        with pytest.raises(OffSiteRedirect) as excinfo:
            materializer.fetch(Category.IMG, "http://example.com/logo.png")

        assert excinfo.value.final_url == "http://cdn.other.com/logo.png"
        assert list((out_dir / "resources" / "img").iterdir()) == []


class TestMaterialize:
    def test_downloads_resolved_url(self, site, out_dir, materializer):
        site.add_asset("http://example.com/blog/img/pic.png", b"png")

        relative = materializer.materialize(asset("http://example.com/blog/img/pic.png", ref="img/pic.png"))

        assert relative == materializer.local_path("http://example.com/blog/img/pic.png", Category.IMG)
        assert (out_dir / relative).read_bytes() == b"png"
        assert materializer.ctx.stats.as_dict()["assets_written"] == 1

    @pytest.mark.parametrize(
        "url",
        ["data:image/png;base64,AAAA", "https://cdn.other.com/x.png", "ftp://example.com/x.png"],
    )
    def test_skipped_urls(self, site, materializer, url):
        assert materializer.materialize(asset(url)) is None
        assert site.requests == []
        assert materializer.ctx.stats.as_dict()["assets_skipped"] == 1

    def test_off_site_redirect_skipped(self, site, out_dir, materializer):
        site.add_redirect("http://example.com/logo.png", "http://cdn.other.com/logo.png")
        site.add_asset("http://cdn.other.com/logo.png", b"png")

        assert materializer.materialize(asset("http://example.com/logo.png")) is None

        stats = materializer.ctx.stats.as_dict()
        assert stats["assets_skipped"] == 1
        assert stats["assets_written"] == 0
        assert stats["assets_failed"] == 0
        assert list((out_dir / "resources" / "img").iterdir()) == []

    def test_off_site_redirect_recorded(self, site, tmp_path, make_engine):
        site.add_redirect("http://example.com/logo.png", "http://cdn.other.com/logo.png")
        site.add_asset("http://cdn.other.com/logo.png", b"png")

        with ManifestWriter(tmp_path / "manifest.jsonl") as manifest:
            assets = make_engine(max_depth=0, manifest=manifest).processor.assets
            assets.materialize(asset("http://example.com/logo.png"))

        record = json.loads((tmp_path / "manifest.jsonl").read_text())
        assert record["url"] == "http://example.com/logo.png"
        assert record["skipped"] == "redirected to http://cdn.other.com/logo.png"
        assert "path" not in record

    def test_failure_is_reported_not_raised(self, site, materializer, caplog):
        assert materializer.materialize(asset("http://example.com/missing.css", Category.CSS)) is None
        assert materializer.ctx.stats.as_dict()["assets_failed"] == 1
        assert "http://example.com/missing.css" in caplog.text

    def test_write_failure_is_reported(self, site, out_dir, materializer):
        site.add_asset("http://example.com/x.js", b"1;")
        target = out_dir / materializer.local_path("http://example.com/x.js", Category.JS)
        target.mkdir(parents=True)

        assert materializer.materialize(asset("http://example.com/x.js", Category.JS)) is None
        assert materializer.ctx.stats.as_dict()["assets_failed"] == 1
