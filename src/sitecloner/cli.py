"""CLI interface using typer."""

import logging

import typer

from .config import settings
from .crawl import StartupError, run_mirror

app = typer.Typer(
    name="site-cloner",
    help="Mirror a website to local disk",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Per-request lines from httpx duplicate our own
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.command()
def clone(
    url: str = typer.Argument(None, help="URL of the website to clone"),
    url_option: str = typer.Option(None, "--url", "-u", help="URL of the website to clone"),
    output: str = typer.Option(settings.output_dir, "-o", "--output", help="Output directory"),
    depth: int = typer.Option(settings.max_depth, "--depth", "-d", help="Maximum depth for crawling links"),
    resources_dir: str = typer.Option(settings.resources_dir, "--resources-dir", help="Asset directory inside the output"),
    workers: int = typer.Option(settings.max_workers, "--workers", "-w", min=1, help="Concurrent worker threads"),
    manifest: str = typer.Option(None, "--manifest", "-m", help="Write a JSONL record of every page and asset"),
    flat_asset_names: bool = typer.Option(
        not settings.unique_asset_names,
        "--flat-asset-names",
        help="Name assets by their last path segment only (same names overwrite)",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log debug output"),
):
    """Clone a website starting from a URL.

    Assets are saved under OUTPUT/RESOURCES_DIR/{css,js,img}/. Top-level pages
    reference them by that path; pages in subdirectories add one ../ per
    directory level so every page renders straight from disk.
    """
    _configure_logging(verbose)

    try:
        run_mirror(
            start_url=url_option or url,
            output_dir=output,
            max_depth=depth,
            resources_dir=resources_dir,
            unique_asset_names=not flat_asset_names,
            max_workers=workers,
            manifest_path=manifest,
        )
    except StartupError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"site-cloner {__version__}")


if __name__ == "__main__":
    app()
