"""Real-time progress output for CLI clone runs.

This module turns the pipeline's streamed event payloads into one status
line per event on stderr, keeping stdout free for the command result.
"""

import sys
from typing import Any, Dict, Optional, TextIO


class ProgressPrinter:
    """Callback printing pipeline events as they arrive."""

    def __init__(self, quiet: bool = False, verbose: bool = False, stream: Optional[TextIO] = None):
        self.quiet = quiet
        self.verbose = verbose
        self._output_stream: TextIO = stream or sys.stderr
        self.events = 0
        self.last_progress: Optional[Dict[str, Any]] = None

    def __call__(self, payload: Dict[str, Any]) -> None:
        self.events += 1
        if 'progress' in payload:
            self.last_progress = payload['progress']

        if self.quiet:
            return

        line = self.format_event(payload)
        if line:
            print(line, file=self._output_stream)

    def format_event(self, payload: Dict[str, Any]) -> Optional[str]:
        """Format one event payload, or None when it should not be shown."""
        if 'cookiesApplied' in payload:
            return f"🍪 Applied {payload['cookiesApplied']} cookies"

        if 'apiCaptured' in payload:
            return f"📡 API {payload['apiCaptured']}" if self.verbose else None

        if 'skippedResource' in payload:
            if not self.verbose:
                return None
            return f"⏭️  Skipped {payload['skippedResource'][:80]} ({payload['reason']})"

        if 'savedResource' in payload:
            progress = payload.get('progress') or {}
            bar = self._format_progress_bar(progress.get('percentage', 0) / 100)
            counts = f"{progress.get('processed', 0)}/{progress.get('total', 0)}"
            if payload.get('status') == 'downloaded':
                return f"   {bar} {counts} ✅ {progress.get('currentFile') or payload['savedResource']}"
            if self.verbose:
                return f"   {bar} {counts} ⏭️  {payload['savedResource']} ({payload.get('reason')})"
            return None

        return None

    def _format_progress_bar(self, progress: float, width: int = 20) -> str:
        """Format a simple progress bar."""
        filled = int(max(0.0, min(1.0, progress)) * width)
        bar = "█" * filled + "░" * (width - filled)
        return f"[{bar}]"

    def summary(self) -> str:
        progress = self.last_progress or {}
        return (
            f"downloaded={progress.get('downloaded', 0)}, "
            f"skipped={progress.get('skipped', 0)}, events={self.events}"
        )
