"""Network response observer for clone capture sessions.

This module provides the NetworkObserver class that hooks into Playwright
network events. Every response body is read in its own task, bounded by a
timeout, and the resulting CapturedResponse is queued for a single consumer
task. All session state is therefore mutated from one place, whatever order
responses arrive in. WebSocket frames are captured through the Chrome
DevTools Protocol, with a fallback to Playwright's websocket events on
engines without CDP.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Response, WebSocket

from ..models.capture import (
    API_ROLES,
    CapturedResponse,
    ResourceRole,
    ResponseOutcome,
    WebSocketFrameEntry,
)
from ..utils.url_normalizer import is_data_url

logger = logging.getLogger(__name__)


ResponseHandler = Callable[[CapturedResponse], Awaitable[None]]

WS_OPCODE_TEXT = 1
WS_OPCODE_BINARY = 2


class NetworkObserver:
    """Reads every response body and hands the results to one consumer."""

    def __init__(
        self,
        page: Page,
        body_read_timeout_ms: int = 15000,
    ):
        """Initialize network observer for a page.

        Args:
            page: Playwright page to observe
            body_read_timeout_ms: Upper bound for a single body read
        """
        self.page = page
        self.body_read_timeout_ms = body_read_timeout_ms

        self.ws_frames: List[WebSocketFrameEntry] = []
        self._handler: Optional[ResponseHandler] = None
        self._queue: "asyncio.Queue[Optional[CapturedResponse]]" = asyncio.Queue()
        self._pending: Set[asyncio.Task] = set()
        self._consumer: Optional[asyncio.Task] = None
        self._cdp_session: Any = None
        self._response_listener: Optional[Callable[[Response], None]] = None

        self._responses_seen = 0
        self._responses_handled = 0
        self._read_failures = 0
        self._handler_errors = 0

        self._setup_listeners()

    def _setup_listeners(self) -> None:
        """Setup Playwright event listeners for network events."""
        self._response_listener = self._on_response
        self.page.on("response", self._response_listener)
        logger.debug("Network observer listeners setup complete")

    def set_handler(self, handler: ResponseHandler) -> None:
        """Set the coroutine called for every captured response.

        Args:
            handler: Coroutine function receiving a CapturedResponse
        """
        self._handler = handler

    def start(self) -> None:
        """Start the consumer task."""
        if self._consumer is None:
            self._consumer = asyncio.get_running_loop().create_task(self._consume())

    async def attach_websocket_capture(self) -> str:
        """Subscribe to WebSocket frames.

        Returns:
            "cdp" when DevTools events are used, "playwright" for the fallback
        """
        try:
            session = await self.page.context.new_cdp_session(self.page)
            await session.send("Network.enable")
        except PlaywrightError as e:
            logger.debug(f"CDP unavailable, using websocket events: {e}")
            self.page.on("websocket", self._on_websocket)
            return "playwright"

        session.on("Network.webSocketFrameSent", lambda event: self._on_cdp_frame("sent", event))
        session.on("Network.webSocketFrameReceived", lambda event: self._on_cdp_frame("recv", event))
        self._cdp_session = session
        logger.debug("WebSocket capture attached via CDP")
        return "cdp"

    def _on_response(self, response: Response) -> None:
        """Handle response event by scheduling its body read."""
        self._responses_seen += 1
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, dropping response {response.url}")
            return

        task = loop.create_task(self._read_response(response))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _read_response(self, response: Response) -> None:
        """Read one response body and queue the structured result."""
        try:
            captured = await self._capture(response)
        except Exception as e:
            self._read_failures += 1
            logger.error(f"Error reading response {response.url}: {e}")
            return
        self._queue.put_nowait(captured)

    async def _capture(self, response: Response) -> CapturedResponse:
        request = response.request
        url = response.url
        role = ResourceRole.from_playwright(request.resource_type)

        try:
            post_data = request.post_data
        except (PlaywrightError, UnicodeDecodeError):
            post_data = None

        fields: Dict[str, Any] = {
            'url': url,
            'method': request.method,
            'role': role,
            'status': response.status,
            'headers': dict(response.headers),
            'request_headers': dict(request.headers),
            'request_body': post_data,
        }

        timeout = self.body_read_timeout_ms / 1000

        if is_data_url(url):
            captured = CapturedResponse(**fields, outcome=ResponseOutcome.FAILED, error="data URL not read")
        elif role in API_ROLES:
            try:
                text = await asyncio.wait_for(response.text(), timeout=timeout)
            except (PlaywrightError, UnicodeDecodeError, asyncio.TimeoutError) as e:
                logger.debug(f"Could not read API response text for {url}: {e}")
                text = ""
            captured = CapturedResponse(**fields, outcome=ResponseOutcome.TEXT, text=text)
        else:
            try:
                body = await asyncio.wait_for(response.body(), timeout=timeout)
                captured = CapturedResponse(**fields, outcome=ResponseOutcome.BYTES, body=body)
            except asyncio.TimeoutError:
                self._read_failures += 1
                captured = CapturedResponse(
                    **fields,
                    outcome=ResponseOutcome.FAILED,
                    error=f"Body read timed out after {self.body_read_timeout_ms}ms",
                )
            except PlaywrightError as e:
                self._read_failures += 1
                captured = CapturedResponse(**fields, outcome=ResponseOutcome.FAILED, error=str(e))

        return captured

    async def _consume(self) -> None:
        """Hand queued responses to the handler one at a time."""
        while True:
            captured = await self._queue.get()
            try:
                if captured is None:
                    return
                if self._handler is not None:
                    await self._handler(captured)
                self._responses_handled += 1
            except Exception as e:
                self._handler_errors += 1
                logger.error(f"Error handling response {captured.url}: {e}")
            finally:
                self._queue.task_done()

    def _remove_listeners(self) -> None:
        """Stop receiving response events from the page."""
        if self._response_listener is not None:
            self.page.remove_listener("response", self._response_listener)
            self._response_listener = None

    async def drain(self, timeout_ms: int = 10000) -> None:
        """Wait for pending body reads and stop the consumer.

        Responses that arrive while draining are waited for as well. Once no
        read is pending the response listener is removed, so nothing can be
        queued behind the stop marker. Reads still running after
        ``timeout_ms`` are cancelled.

        Args:
            timeout_ms: Upper bound for waiting on pending reads
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000

        while True:
            pending = {task for task in self._pending if not task.done()}
            remaining = deadline - loop.time()
            if not pending or remaining <= 0:
                break
            await asyncio.wait(pending, timeout=remaining)

        self._remove_listeners()

        still_pending = {task for task in self._pending if not task.done()}
        if still_pending:
            for task in still_pending:
                task.cancel()
            logger.warning(f"Cancelled {len(still_pending)} body reads still pending after drain")
            await asyncio.gather(*still_pending, return_exceptions=True)

        if self._consumer is not None:
            self._queue.put_nowait(None)
            await self._consumer
            self._consumer = None
        else:
            # Consumer never started: handle whatever was queued inline
            while not self._queue.empty():
                captured = self._queue.get_nowait()
                if captured is not None and self._handler is not None:
                    await self._handler(captured)
                    self._responses_handled += 1

        logger.debug(f"Network observer drained: {self.get_stats()}")

    def _on_cdp_frame(self, direction: str, event: Dict[str, Any]) -> None:
        response = event.get("response") or {}
        self._record_frame(
            direction,
            str(event.get("requestId", "")),
            response.get("payloadData", ""),
            response.get("opcode", WS_OPCODE_TEXT),
        )

    def _on_websocket(self, websocket: WebSocket) -> None:
        connection_id = websocket.url
        websocket.on("framesent", lambda payload: self._on_playwright_frame("sent", connection_id, payload))
        websocket.on("framereceived", lambda payload: self._on_playwright_frame("recv", connection_id, payload))

    def _on_playwright_frame(self, direction: str, connection_id: str, payload: Union[str, bytes]) -> None:
        if isinstance(payload, bytes):
            self._record_frame(direction, connection_id, payload.decode("utf-8", errors="replace"), WS_OPCODE_BINARY)
        else:
            self._record_frame(direction, connection_id, payload, WS_OPCODE_TEXT)

    def _record_frame(self, direction: str, connection_id: str, data: Optional[str], opcode: int) -> None:
        self.ws_frames.append(WebSocketFrameEntry(
            type=direction,
            timestamp=time.time() * 1000,
            id=connection_id,
            data=data or "",
            op=int(opcode or WS_OPCODE_TEXT),
        ))

    @property
    def pending_reads(self) -> int:
        return len(self._pending)

    def get_stats(self) -> Dict[str, int]:
        """Get observer statistics."""
        return {
            'responses_seen': self._responses_seen,
            'responses_handled': self._responses_handled,
            'pending_reads': len(self._pending),
            'read_failures': self._read_failures,
            'handler_errors': self._handler_errors,
            'ws_frames': len(self.ws_frames),
        }

    def __repr__(self) -> str:
        return (
            f"NetworkObserver(seen={self._responses_seen}, "
            f"handled={self._responses_handled}, pending={len(self._pending)})"
        )
