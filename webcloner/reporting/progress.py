"""Progress reporting for clone capture sessions.

This module provides the ProgressReporter class that keeps the running
processed/downloaded/skipped counters for a session and fans out every
streamed pipeline event to registered observers.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..models.capture import PersistStatus
from ..models.events import ProgressSnapshot

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[Dict[str, Any]], None]


class ProgressReporter:
    """Aggregates capture counters and emits self-contained snapshots.

    Counters only grow between calls to ``reset()``. When an expected total is
    known (for example from network hints), the percentage is computed
    against it; otherwise every snapshot reports the items seen so far as the
    total, which makes the percentage saturate at 100.
    """

    def __init__(self, expected_total: Optional[int] = None):
        """Initialize progress reporter.

        Args:
            expected_total: Number of resources expected in the session, if known
        """
        self._callbacks: List[ProgressCallback] = []
        self.processed = 0
        self.downloaded = 0
        self.skipped = 0
        self.expected_total: Optional[int] = None
        self.current_file: Optional[str] = None
        self.events_emitted = 0
        self.reset(expected_total)

    def add_callback(self, callback: ProgressCallback) -> None:
        """Add observer called with every event payload.

        Args:
            callback: Function receiving the camelCase event dictionary
        """
        self._callbacks.append(callback)

    def reset(self, expected_total: Optional[int] = None) -> None:
        """Reset counters at session start."""
        self.processed = 0
        self.downloaded = 0
        self.skipped = 0
        self.current_file = None
        self.events_emitted = 0
        self.expected_total = expected_total if expected_total and expected_total > 0 else None

    def set_expected_total(self, expected_total: Optional[int]) -> None:
        """Set the denominator used for the percentage."""
        self.expected_total = expected_total if expected_total and expected_total > 0 else None

    def record(self, status: PersistStatus, current_file: Optional[str] = None) -> ProgressSnapshot:
        """Count one handled resource and return the resulting snapshot.

        Args:
            status: Persistence outcome; failures count as skipped
            current_file: Basename of the handled file

        Returns:
            Snapshot after the update
        """
        self.processed += 1
        if status == PersistStatus.DOWNLOADED:
            self.downloaded += 1
        else:
            self.skipped += 1
        if current_file:
            self.current_file = current_file
        return self.snapshot()

    def snapshot(self) -> ProgressSnapshot:
        """Build a snapshot of the current counters."""
        if self.expected_total:
            total = max(self.expected_total, self.processed)
            percentage = min(100.0, round(self.processed / self.expected_total * 100, 2))
        else:
            total = self.processed
            percentage = 100.0 if self.processed else 0.0

        return ProgressSnapshot(
            total=total,
            processed=self.processed,
            downloaded=self.downloaded,
            skipped=self.skipped,
            percentage=percentage,
            current_file=self.current_file,
            current_file_progress=100,
        )

    def emit(self, event: Any) -> Dict[str, Any]:
        """Send an event to every observer.

        Args:
            event: Event model with ``to_wire()`` or a ready payload dictionary

        Returns:
            The payload that was emitted
        """
        payload = event.to_wire() if hasattr(event, 'to_wire') else dict(event)
        self.events_emitted += 1

        for callback in self._callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Error in progress callback: {e}")

        return payload

    def get_stats(self) -> Dict[str, Any]:
        """Get reporter statistics."""
        return {
            'processed': self.processed,
            'downloaded': self.downloaded,
            'skipped': self.skipped,
            'expected_total': self.expected_total,
            'events_emitted': self.events_emitted,
        }

    def __repr__(self) -> str:
        return (
            f"ProgressReporter(processed={self.processed}, "
            f"downloaded={self.downloaded}, skipped={self.skipped})"
        )
