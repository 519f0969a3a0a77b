#!/usr/bin/env python3
"""Main CLI entry point for Web Cloner using Typer.

This module provides the command-line interface for cloning pages, saving
supplied HTML, and running the static reference extractor and URL
classifier on their own.
"""

import asyncio
import json
import logging
import os
import sys
from enum import IntEnum
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from .. import __version__
from ..capture.config import ENV_VAR, CloneConfigManager, get_config
from ..capture.engine import ClonePipeline
from ..capture.errors import CloneError, ConfigurationError, NavigationError
from ..classify.url_classifier import URLClassifier
from ..extract.static_extractor import extract_static_references
from ..models.capture import CloneRequest, CookieInput, NetworkHints
from .progress import ProgressPrinter


class ExitCode(IntEnum):
    """CLI exit codes for scripting."""
    SUCCESS = 0            # HTML saved
    CLONE_FAILED = 1       # Pipeline failure other than navigation
    NAVIGATION_FAILED = 2  # Target page could not be loaded
    CONFIG_ERROR = 3       # Configuration or input error
    RUNTIME_ERROR = 4      # Unexpected error or interruption


app = typer.Typer(
    name="webcloner",
    help="Web Cloner - capture a rendered page and its assets as a local copy",
    add_completion=False,
    rich_markup_mode="rich"
)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for a CLI run."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _load_json(path: Path, what: str) -> Any:
    if not path.exists():
        typer.echo(f"❌ {what} file not found: {path}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"❌ Could not read {what} file {path}: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)


def _load_cookies(path: Path) -> List[CookieInput]:
    data = _load_json(path, "Cookies")
    if isinstance(data, dict):
        data = data.get('cookies', [])
    if not isinstance(data, list):
        typer.echo("❌ Cookies file must contain a list of cookies", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)
    try:
        return [CookieInput.model_validate(item) for item in data]
    except ValidationError as e:
        typer.echo(f"❌ Invalid cookie: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)


@app.callback()
def main():
    """
    Web Cloner - capture a rendered page and its assets as a local copy.

    Loads a page in a headless browser, saves every static resource it
    fetches, rewrites references to point at the saved files, and logs the
    page's API and WebSocket traffic.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"Web Cloner v{__version__}")


@app.command()
def clone(
    url: Annotated[
        str,
        typer.Argument(help="URL of the page to clone")
    ],

    out: Annotated[
        Path,
        typer.Option("--out", "-o", help="Output directory")
    ] = Path("output"),

    filename: Annotated[
        str,
        typer.Option("--filename", help="Name of the saved HTML file")
    ] = "index.html",

    cookies: Annotated[
        Optional[Path],
        typer.Option("--cookies", help="JSON file with cookies to inject")
    ] = None,

    network_data: Annotated[
        Optional[Path],
        typer.Option("--network-data", help="JSON file with network hints from a prior observation")
    ] = None,

    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to clone configuration YAML")
    ] = None,

    env: Annotated[
        Optional[str],
        typer.Option("--env", "-e", help="Configuration environment to apply")
    ] = None,

    headful: Annotated[
        bool,
        typer.Option("--headful", help="Run browser with GUI (for debugging)")
    ] = False,

    timeout: Annotated[
        Optional[int],
        typer.Option("--timeout", help="Navigation timeout in milliseconds")
    ] = None,

    settle: Annotated[
        Optional[int],
        typer.Option("--settle", help="Delay after navigation before the snapshot, in milliseconds")
    ] = None,

    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON")
    ] = False,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output")
    ] = False,

    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only print errors and the result")
    ] = False,
):
    """
    Clone a page and its assets into the output directory.

    Progress is streamed to stderr; the saved HTML path (or JSON result with
    --json) is printed to stdout.
    """
    configure_logging(verbose, quiet)

    if env:
        os.environ[ENV_VAR] = env

    try:
        manager = CloneConfigManager(config) if config else get_config()
        engine_config = manager.load_config(force_reload=True).get_engine_config()
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    if headful:
        engine_config.browser_config.headless = False
    if timeout is not None:
        engine_config.session_config.navigation_timeout_ms = timeout
    if settle is not None:
        engine_config.session_config.settle_delay_ms = settle

    cookie_list = _load_cookies(cookies) if cookies else []
    hints = None
    if network_data:
        try:
            hints = NetworkHints.model_validate(_load_json(network_data, "Network data"))
        except ValidationError as e:
            typer.echo(f"❌ Invalid network data: {e}", err=True)
            raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    try:
        request = CloneRequest(
            url=url,
            output_dir=out,
            filename=filename,
            cookies=cookie_list,
            network_data=hints,
        )
    except ValidationError as e:
        typer.echo(f"❌ Invalid request: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    printer = ProgressPrinter(quiet=quiet, verbose=verbose)
    pipeline = ClonePipeline(engine_config)
    pipeline.add_callback(printer)

    if not quiet:
        typer.echo(f"🔄 Cloning {url} into {out}", err=True)

    try:
        result = asyncio.run(pipeline.run(request))
    except KeyboardInterrupt:
        typer.echo("❌ Operation interrupted by user", err=True)
        raise typer.Exit(code=ExitCode.RUNTIME_ERROR.value)
    except NavigationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=ExitCode.NAVIGATION_FAILED.value)
    except CloneError as e:
        typer.echo(f"❌ Clone failed: {e}", err=True)
        raise typer.Exit(code=ExitCode.CLONE_FAILED.value)

    if json_output:
        typer.echo(json.dumps(result.to_wire(), indent=2))
    else:
        if not quiet:
            typer.echo(f"✅ Clone completed ({printer.summary()})", err=True)
        typer.echo(str(result.saved_full_path))


@app.command(name="save-html")
def save_html(
    html_file: Annotated[
        Path,
        typer.Argument(help="HTML file to save")
    ],

    out: Annotated[
        Path,
        typer.Option("--out", "-o", help="Output directory")
    ] = Path("output"),

    filename: Annotated[
        str,
        typer.Option("--filename", help="Name of the saved HTML file")
    ] = "index.html",
):
    """
    Save existing HTML into the output layout without launching a browser.
    """
    configure_logging(quiet=True)

    try:
        html = html_file.read_text(encoding='utf-8')
    except OSError as e:
        typer.echo(f"❌ Could not read {html_file}: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    try:
        request = CloneRequest(output_dir=out, filename=filename, html_only=True, html=html)
    except ValidationError as e:
        typer.echo(f"❌ Invalid request: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    try:
        result = asyncio.run(ClonePipeline().run(request))
    except CloneError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=ExitCode.CLONE_FAILED.value)

    typer.echo(json.dumps(result.to_wire(), indent=2))


@app.command()
def extract(
    html_file: Annotated[
        Path,
        typer.Argument(help="HTML file to scan")
    ],

    base_url: Annotated[
        str,
        typer.Option("--base-url", "-b", help="URL the HTML was served from")
    ],
):
    """
    List the same-origin static files referenced by an HTML document.
    """
    try:
        html = html_file.read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        typer.echo(f"❌ Could not read {html_file}: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    analysis = extract_static_references(html, base_url)
    typer.echo(json.dumps(analysis.to_wire(), indent=2))


@app.command()
def classify(
    url: Annotated[
        str,
        typer.Argument(help="URL to classify")
    ],

    method: Annotated[
        str,
        typer.Option("--method", "-m", help="HTTP method of the request")
    ] = "GET",
):
    """
    Classify a URL as an API request or a static file.
    """
    classification = URLClassifier().classify_url(url, method)
    typer.echo(json.dumps(classification.model_dump(mode='json'), indent=2))


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    app()
