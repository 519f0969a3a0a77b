"""Clone pipeline that coordinates capture, persistence and rewriting.

This module provides the ClonePipeline class that launches the browser,
runs one PageSession per request with fresh session state, rewrites the
captured HTML and stylesheets to reference local files, and flushes the
API and WebSocket logs.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .browser_factory import BrowserConfig, BrowserFactory
from .errors import CloneError
from .page_session import PageSession, PageSessionConfig
from ..classify.url_classifier import URLClassifier
from ..models.capture import CloneRequest, CloneResult, NetworkHints
from ..models.classification import UrlType
from ..persistence.asset_store import AssetStore
from ..persistence.log_writer import DEFAULT_FILENAME_MAX_LENGTH, CaptureLogWriter
from ..reporting.progress import ProgressCallback, ProgressReporter
from ..rewrite.css_rewriter import rewrite_stylesheets
from ..rewrite.html_rewriter import rewrite_html

logger = logging.getLogger(__name__)


class CloneEngineConfig:
    """Configuration for the clone pipeline."""

    def __init__(
        self,
        browser_config: Optional[BrowserConfig] = None,
        session_config: Optional[PageSessionConfig] = None,
        assets_dir: str = "assets",
        logs_dir: str = "logs",
        log_filename_max_length: int = DEFAULT_FILENAME_MAX_LENGTH,
    ):
        """Initialize clone engine configuration.

        Args:
            browser_config: Browser factory configuration
            session_config: Page session configuration
            assets_dir: Name of the asset tree under the output root
            logs_dir: Name of the log directory under the output root
            log_filename_max_length: Maximum stem length of per-request log files
        """
        self.browser_config = browser_config or BrowserConfig()
        self.session_config = session_config or PageSessionConfig()
        self.assets_dir = assets_dir
        self.logs_dir = logs_dir
        self.log_filename_max_length = log_filename_max_length


def classify_hints(hints: Optional[NetworkHints], classifier: URLClassifier) -> Dict[str, int]:
    """Classify seed hints and count them per URL type.

    Args:
        hints: Hints from a prior observation phase
        classifier: Session classifier

    Returns:
        Mapping of URL type value to count
    """
    breakdown: Counter = Counter({url_type.value: 0 for url_type in UrlType})
    if hints is None:
        return dict(breakdown)

    for url, method in hints.iter_urls():
        classification = classifier.classify_url(url, method)
        breakdown[classification.type.value] += 1

    return dict(breakdown)


class ClonePipeline:
    """Runs clone requests end to end."""

    def __init__(
        self,
        config: Optional[CloneEngineConfig] = None,
        factory: Optional[BrowserFactory] = None,
    ):
        """Initialize clone pipeline.

        Args:
            config: Engine configuration (uses defaults if None)
            factory: Browser factory to use instead of creating one per run
        """
        self.config = config or CloneEngineConfig()
        self._factory = factory
        self._callbacks: List[ProgressCallback] = []

        self.stats: Dict[str, Any] = {
            'runs_attempted': 0,
            'runs_successful': 0,
            'runs_failed': 0,
            'last_run': None,
        }

    def add_callback(self, callback: ProgressCallback) -> None:
        """Add callback receiving every streamed progress payload.

        Args:
            callback: Function called with the camelCase event dictionary
        """
        self._callbacks.append(callback)

    def _create_reporter(self) -> ProgressReporter:
        reporter = ProgressReporter()
        for callback in self._callbacks:
            reporter.add_callback(callback)
        return reporter

    async def run(self, request: CloneRequest) -> CloneResult:
        """Execute a clone request.

        Args:
            request: Pipeline invocation parameters

        Returns:
            Paths of the written HTML file

        Raises:
            NavigationError: If the target page cannot be loaded
            CloneError: For any other pipeline failure
        """
        if request.html_only:
            return await self.save_html_only(request)

        self.stats['runs_attempted'] += 1
        self.stats['last_run'] = datetime.now(timezone.utc)

        try:
            result = await self._run_capture(request)
        except CloneError:
            self.stats['runs_failed'] += 1
            raise
        except Exception as e:
            self.stats['runs_failed'] += 1
            logger.error(f"Clone of {request.url} failed: {e}")
            raise CloneError(str(e)) from e

        self.stats['runs_successful'] += 1
        return result

    async def _run_capture(self, request: CloneRequest) -> CloneResult:
        classifier = URLClassifier()
        reporter = self._create_reporter()

        breakdown = classify_hints(request.network_data, classifier)
        expected = breakdown[UrlType.STATIC_FILE.value]
        if request.network_data is not None:
            reporter.set_expected_total(expected)
            logger.info(
                f"Network hints: {expected} static, {breakdown[UrlType.API_REQUEST.value]} API, "
                f"{breakdown[UrlType.UNKNOWN.value]} unknown"
            )

        store = AssetStore(
            request.output_dir,
            classifier=classifier,
            reporter=reporter,
            assets_dir_name=self.config.assets_dir,
        )

        owns_factory = self._factory is None
        factory = self._factory or BrowserFactory(self.config.browser_config)
        if not factory.is_started:
            await factory.start()

        try:
            async with factory.page() as page:
                session = PageSession(
                    page,
                    self.config.session_config,
                    store,
                    reporter=reporter,
                    classifier=classifier,
                )
                snapshot = await session.capture_page(request.url, request.cookies)
        finally:
            if owns_factory:
                await factory.stop()

        mapping = store.get_mapping()
        html_dir = store.assets_root
        html = rewrite_html(snapshot.html, mapping, html_dir, snapshot.final_url)
        html_path = await store.write_text(request.filename, html)
        logger.info(f"Saved HTML to {html_path}")

        await rewrite_stylesheets(mapping, snapshot.final_url)

        log_writer = CaptureLogWriter(
            Path(request.output_dir) / self.config.logs_dir,
            self.config.log_filename_max_length,
        )
        await log_writer.write_logs(session.api_entries, session.observer.ws_frames)

        logger.debug(f"Session stats: {session.get_stats()}")

        return CloneResult(
            saved_full_path=html_path.resolve(),
            saved_relative_path=request.filename,
            capture_status=snapshot.capture_status,
            assets_downloaded=reporter.downloaded,
            assets_skipped=reporter.skipped,
            api_entries=len(session.api_entries),
            ws_frames=len(session.observer.ws_frames),
        )

    async def save_html_only(self, request: CloneRequest) -> CloneResult:
        """Write caller-supplied HTML without launching a browser.

        Args:
            request: Request with ``html_only`` and ``html`` set

        Returns:
            Paths of the written HTML file
        """
        store = AssetStore(request.output_dir, assets_dir_name=self.config.assets_dir)
        try:
            html_path = await store.write_text(request.filename, request.html or "")
        except OSError as e:
            logger.error(f"Failed to save HTML to {request.output_dir}: {e}")
            raise CloneError(f"Failed to save HTML: {e}") from e

        logger.info(f"Saved HTML to {html_path}")
        return CloneResult(
            saved_full_path=html_path.resolve(),
            saved_relative_path=request.filename,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics."""
        return dict(self.stats)

    def __repr__(self) -> str:
        return (
            f"ClonePipeline(runs={self.stats['runs_attempted']}, "
            f"successful={self.stats['runs_successful']})"
        )


async def run_clone(
    request: CloneRequest,
    callbacks: Optional[Iterable[Callable[[Dict[str, Any]], None]]] = None,
    config: Optional[CloneEngineConfig] = None,
) -> CloneResult:
    """Run one clone request with a fresh pipeline.

    Args:
        request: Pipeline invocation parameters
        callbacks: Observers for streamed progress payloads
        config: Engine configuration (uses defaults if None)

    Returns:
        Paths of the written HTML file
    """
    pipeline = ClonePipeline(config)
    for callback in callbacks or []:
        pipeline.add_callback(callback)
    return await pipeline.run(request)
