"""Page session orchestration for clone capture.

This module provides the PageSession class that coordinates the capture
components (cookie injection, network observer, asset store, progress
reporter) to load one page, route every observed response and take the
final DOM snapshot.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from .cookies import apply_cookies
from .errors import NavigationError
from .network_observer import NetworkObserver
from ..classify.url_classifier import URLClassifier
from ..models.capture import (
    API_ROLES,
    ASSET_ROLES,
    ApiLogEntry,
    CapturedResponse,
    CaptureStatus,
    CookieInput,
    PageSnapshot,
    ResponseOutcome,
)
from ..models.events import ApiCapturedEvent, CookiesAppliedEvent, SkippedResourceEvent
from ..persistence.asset_store import AssetStore
from ..reporting.progress import ProgressReporter

logger = logging.getLogger(__name__)


SKIP_REASON_DATA_URL = "base64 data URL"


def format_utc_timestamp(moment: datetime) -> str:
    """Format a moment as ISO-8601 UTC with millisecond precision and a Z suffix.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


class WaitStrategy:
    """Load states accepted by ``page.goto``."""
    NETWORKIDLE = "networkidle"
    LOAD = "load"
    DOMCONTENTLOADED = "domcontentloaded"
    COMMIT = "commit"


class PageSessionConfig:
    """Configuration for page capture sessions."""

    def __init__(
        self,
        navigation_timeout_ms: int = 90000,
        wait_until: str = WaitStrategy.NETWORKIDLE,
        settle_delay_ms: int = 3000,
        body_read_timeout_ms: int = 15000,
        drain_timeout_ms: int = 10000,
        capture_websockets: bool = True,
        fail_on_navigation_timeout: bool = True,
    ):
        """Initialize page session configuration.

        Args:
            navigation_timeout_ms: Maximum time for ``page.goto``
            wait_until: Load state that ends navigation
            settle_delay_ms: Fixed wait after navigation before the snapshot
            body_read_timeout_ms: Upper bound for a single response body read
            drain_timeout_ms: Upper bound for pending body reads after the snapshot
            capture_websockets: Whether to record WebSocket frames
            fail_on_navigation_timeout: Raise on navigation timeout instead of
                continuing with a partial capture
        """
        self.navigation_timeout_ms = navigation_timeout_ms
        self.wait_until = wait_until
        self.settle_delay_ms = settle_delay_ms
        self.body_read_timeout_ms = body_read_timeout_ms
        self.drain_timeout_ms = drain_timeout_ms
        self.capture_websockets = capture_websockets
        self.fail_on_navigation_timeout = fail_on_navigation_timeout


class PageSession:
    """Loads one page and routes its network traffic into the session state."""

    def __init__(
        self,
        page: Page,
        config: PageSessionConfig,
        store: AssetStore,
        reporter: Optional[ProgressReporter] = None,
        classifier: Optional[URLClassifier] = None,
    ):
        """Initialize page session.

        Args:
            page: Playwright page for capture
            config: Page session configuration
            store: Asset store receiving static bodies
            reporter: Progress reporter; defaults to the store's reporter
            classifier: Session classifier; defaults to the store's classifier
        """
        self.page = page
        self.config = config
        self.store = store
        self.reporter = reporter or store.reporter
        self.classifier = classifier or store.classifier

        self.observer = NetworkObserver(page, body_read_timeout_ms=config.body_read_timeout_ms)
        self.observer.set_handler(self._handle_response)

        self.api_entries: List[ApiLogEntry] = []
        self._api_keys: Set[Tuple[str, str]] = set()
        self.snapshot: Optional[PageSnapshot] = None

        self.session_start_time: Optional[datetime] = None
        self.load_complete_time: Optional[datetime] = None
        self._skipped_data_urls = 0
        self._ignored = 0

    async def capture_page(
        self,
        url: str,
        cookies: Optional[Iterable[CookieInput]] = None,
    ) -> PageSnapshot:
        """Navigate to a URL and capture its final DOM and network traffic.

        Args:
            url: Page URL to load
            cookies: Cookies to inject before navigation

        Returns:
            Snapshot of the page after the settle delay

        Raises:
            NavigationError: If the page cannot be loaded
        """
        self.session_start_time = datetime.now(timezone.utc)
        logger.info(f"Starting page capture: {url}")

        applied = await apply_cookies(self.page.context, cookies or [], url)
        if applied:
            self.reporter.emit(CookiesAppliedEvent(cookies_applied=applied))

        if self.config.capture_websockets:
            await self.observer.attach_websocket_capture()

        self.observer.start()
        try:
            status, error = await self._navigate(url)

            if self.config.settle_delay_ms > 0:
                await self.page.wait_for_timeout(self.config.settle_delay_ms)

            html = await self.page.content()
            self.load_complete_time = datetime.now(timezone.utc)
        finally:
            await self.observer.drain(self.config.drain_timeout_ms)

        self.snapshot = PageSnapshot(
            url=url,
            final_url=self.page.url or url,
            html=html,
            capture_status=status,
            error=error,
        )

        logger.info(
            f"Page capture completed: {url} ({status.value}, "
            f"{len(self.store.mapping)} assets, {len(self.api_entries)} API entries)"
        )
        return self.snapshot

    async def _navigate(self, url: str) -> Tuple[CaptureStatus, Optional[str]]:
        """Run ``page.goto`` and map failures onto NavigationError."""
        try:
            await self.page.goto(
                url,
                wait_until=self.config.wait_until,
                timeout=self.config.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            message = f"Timed out after {self.config.navigation_timeout_ms}ms"
            if self.config.fail_on_navigation_timeout:
                logger.error(f"Navigation timeout: {url}")
                raise NavigationError(url, message, timed_out=True, cause=e) from e
            logger.warning(f"Navigation timeout, continuing with partial capture: {url}")
            return CaptureStatus.PARTIAL, message
        except PlaywrightError as e:
            logger.error(f"Navigation failed: {url}: {e}")
            raise NavigationError(url, str(e), cause=e) from e

        logger.debug(f"Navigation completed: {url}")
        return CaptureStatus.SUCCESS, None

    async def _handle_response(self, captured: CapturedResponse) -> None:
        """Route one captured response. Runs on the observer's consumer task."""
        if captured.role in API_ROLES:
            self._record_api(captured, captured.text or "")
            return

        if captured.is_data_url:
            self._skipped_data_urls += 1
            self.reporter.emit(SkippedResourceEvent(
                skipped_resource=captured.url,
                reason=SKIP_REASON_DATA_URL,
            ))
            return

        if captured.role in ASSET_ROLES:
            await self._record_asset(captured)
            return

        classification = self.classifier.classify_url(captured.url, captured.method)
        if classification.is_api:
            text = captured.body.decode('utf-8', errors='replace') if captured.body else ""
            self._record_api(captured, text)
        elif classification.is_static:
            await self._record_asset(captured)
        else:
            self._ignored += 1
            logger.debug(
                f"Ignoring {captured.role.value} response {captured.url}: {classification.reason}"
            )

    def _record_api(self, captured: CapturedResponse, text: str) -> None:
        key = (captured.method.upper(), captured.url)
        if key in self._api_keys:
            logger.debug(f"Duplicate API response ignored: {captured.method} {captured.url}")
            return
        self._api_keys.add(key)

        classification = self.classifier.classify_url(captured.url, captured.method)
        entry = ApiLogEntry(
            timestamp=format_utc_timestamp(captured.observed_at),
            method=captured.method,
            url=captured.url,
            headers=captured.request_headers,
            post_data=captured.request_body,
            status=captured.status,
            response_text=text,
            classification=classification.type.value,
            confidence=classification.confidence,
        )
        self.api_entries.append(entry)
        self.reporter.emit(ApiCapturedEvent(api_captured=captured.url))
        logger.debug(f"Captured API response: {captured.method} {captured.url}")

    async def _record_asset(self, captured: CapturedResponse) -> None:
        if captured.outcome == ResponseOutcome.FAILED:
            logger.debug(f"Skipping {captured.url}: {captured.error}")
            return
        if not captured.body:
            logger.debug(f"Skipping empty body: {captured.url}")
            return

        await self.store.persist(captured.url, captured.body, captured.role, captured.method)

    def get_session_duration_ms(self) -> Optional[float]:
        """Get total session duration in milliseconds."""
        if self.session_start_time:
            end_time = self.load_complete_time or datetime.now(timezone.utc)
            return (end_time - self.session_start_time).total_seconds() * 1000
        return None

    def get_stats(self) -> Dict[str, Any]:
        """Get session statistics."""
        return {
            'session_duration_ms': self.get_session_duration_ms(),
            'capture_status': self.snapshot.capture_status.value if self.snapshot else 'not_started',
            'api_entries': len(self.api_entries),
            'skipped_data_urls': self._skipped_data_urls,
            'ignored_responses': self._ignored,
            'network': self.observer.get_stats(),
            'store': self.store.get_stats(),
            'progress': self.reporter.get_stats(),
        }

    def __repr__(self) -> str:
        status = self.snapshot.capture_status.value if self.snapshot else 'not_started'
        url = self.snapshot.url if self.snapshot else 'none'
        return f"PageSession(url={url}, status={status})"
