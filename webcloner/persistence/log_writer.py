"""API and WebSocket log output.

This module writes the session's captured xhr/fetch exchanges and
WebSocket frames under ``<output>/logs/``: one combined array per kind plus
one file per API request.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union
from urllib.parse import quote

import aiofiles
import aiofiles.os

from ..models.capture import ApiLogEntry, WebSocketFrameEntry

logger = logging.getLogger(__name__)


API_LOG_FILENAME = "api_logs.json"
WS_LOG_FILENAME = "ws_logs.json"
DEFAULT_FILENAME_MAX_LENGTH = 230

# Characters encodeURIComponent leaves untouched besides alphanumerics and -_.
_URI_COMPONENT_SAFE = "!~*'()"


def api_log_filename(url: str, max_length: int = DEFAULT_FILENAME_MAX_LENGTH) -> str:
    """Build the per-request log file name for a URL.

    The URL is percent-encoded as a URI component, ``%`` is replaced with
    ``_`` and the result is truncated before the ``.json`` suffix is added.

    Args:
        url: Request URL
        max_length: Maximum length of the stem

    Returns:
        File name such as ``https_3A_2F_2Fx.com_2Fapi.json``
    """
    encoded = quote(url, safe=_URI_COMPONENT_SAFE).replace('%', '_')
    return f"{encoded[:max_length]}.json"


class CaptureLogWriter:
    """Writes API and WebSocket logs for one session."""

    def __init__(
        self,
        logs_dir: Union[str, Path],
        filename_max_length: int = DEFAULT_FILENAME_MAX_LENGTH,
    ):
        """Initialize log writer.

        Args:
            logs_dir: Directory receiving the log files
            filename_max_length: Maximum stem length for per-request files
        """
        self.logs_dir = Path(logs_dir)
        self.filename_max_length = filename_max_length

    async def write_logs(
        self,
        api_entries: Iterable[ApiLogEntry],
        ws_frames: Iterable[WebSocketFrameEntry],
    ) -> Dict[str, int]:
        """Write per-request files and the combined logs.

        Args:
            api_entries: Captured API exchanges
            ws_frames: Captured WebSocket frames

        Returns:
            Counts of files and entries written
        """
        await aiofiles.os.makedirs(self.logs_dir, exist_ok=True)

        api_payload = [entry.to_wire() for entry in api_entries]
        ws_payload = [frame.model_dump() for frame in ws_frames]

        per_request = 0
        for entry in api_payload:
            filename = api_log_filename(entry['url'], self.filename_max_length)
            try:
                await self._write_json(self.logs_dir / filename, entry)
                per_request += 1
            except OSError as e:
                logger.warning(f"Failed to write API log for {entry['url']}: {e}")

        await self._write_json(self.logs_dir / API_LOG_FILENAME, api_payload)
        await self._write_json(self.logs_dir / WS_LOG_FILENAME, ws_payload)

        logger.info(
            f"Wrote {len(api_payload)} API entries and {len(ws_payload)} WebSocket frames "
            f"to {self.logs_dir}"
        )

        return {
            'api_entries': len(api_payload),
            'ws_frames': len(ws_payload),
            'per_request_files': per_request,
        }

    async def _write_json(self, path: Path, payload: Union[List[Any], Dict[str, Any]]) -> None:
        async with aiofiles.open(path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(payload, indent=2, default=str, ensure_ascii=False))
