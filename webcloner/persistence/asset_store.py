"""Asset persistence and remote-to-local path mapping.

This module provides the AssetStore class that turns captured response
bodies into files under ``<output>/assets/`` and keeps the session's
remote URL to local file mapping used by the reference rewriters.
"""

import logging
import posixpath
from pathlib import Path
from typing import Dict, Optional, Set, Tuple, Union
from urllib.parse import urlparse

import aiofiles.os

from ..classify.url_classifier import URLClassifier, get_file_extension, get_file_type, get_mime_type
from ..reporting.progress import ProgressReporter
from ..models.capture import (
    AssetRecord,
    PersistOutcome,
    PersistStatus,
    ResourceRole,
)
from ..models.events import SavedResourceEvent
from ..utils.files import write_atomic

logger = logging.getLogger(__name__)


REASON_URL_EXISTS = "URL already exists"
REASON_FILE_EXISTS = "File already exists"
INDEX_SEGMENT = "index"


def derive_relative_path(url: str, role: Union[ResourceRole, str]) -> str:
    """Derive the asset-root-relative path for a URL.

    The result depends only on the URL path and the role. Query strings and
    fragments are ignored, and ``.``/``..``/empty segments are dropped so the
    path always stays inside the asset root.

    Args:
        url: Remote URL
        role: Resource role the body was captured as

    Returns:
        Relative POSIX path, e.g. ``css/site.css`` or ``about/index.html``
    """
    path = urlparse(url).path or '/'
    if path.endswith('/'):
        path += INDEX_SEGMENT

    segments = [segment for segment in path.split('/') if segment not in ('', '.', '..')]
    if not segments:
        segments = [INDEX_SEGMENT]

    if ResourceRole(role) == ResourceRole.DOCUMENT and not posixpath.splitext(segments[-1])[1]:
        segments[-1] += '.html'

    return '/'.join(segments)


class AssetStore:
    """Writes captured assets once and records where each URL was saved."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        classifier: Optional[URLClassifier] = None,
        reporter: Optional[ProgressReporter] = None,
        assets_dir_name: str = "assets",
    ):
        """Initialize asset store.

        Args:
            output_dir: Output root directory
            classifier: Session classifier used for file metadata
            reporter: Progress reporter updated on every outcome
            assets_dir_name: Name of the asset tree under the output root
        """
        self.output_dir = Path(output_dir)
        self.assets_root = self.output_dir / assets_dir_name
        self.classifier = classifier or URLClassifier()
        self.reporter = reporter or ProgressReporter()

        self.mapping: Dict[str, AssetRecord] = {}
        self._handled: Set[Tuple[str, str]] = set()
        self._bytes_written = 0
        self._failures = 0

    def local_path_for(self, url: str, role: Union[ResourceRole, str]) -> Path:
        """Absolute local path an asset is saved to."""
        return self.assets_root.joinpath(*derive_relative_path(url, role).split('/'))

    async def persist(
        self,
        url: str,
        body: bytes,
        role: Union[ResourceRole, str],
        method: str = "GET",
    ) -> PersistOutcome:
        """Persist one asset body.

        Args:
            url: Remote URL
            body: Response bytes
            role: Resource role
            method: HTTP method the asset was fetched with

        Returns:
            Outcome describing whether the file was written or skipped
        """
        role = ResourceRole(role)
        method = (method or "GET").upper()
        key = (method, url)
        relative = derive_relative_path(url, role)
        target = self.local_path_for(url, role)

        if key in self._handled:
            record = self.mapping.get(url) or self._make_record(url, target, relative, role, len(body))
            self.mapping.setdefault(url, record)
            outcome = PersistOutcome(
                url=url, path=relative, status=PersistStatus.SKIPPED,
                reason=REASON_URL_EXISTS, record=record,
            )
        elif await aiofiles.os.path.exists(target):
            record = self._make_record(url, target, relative, role, len(body))
            self.mapping.setdefault(url, record)
            self._handled.add(key)
            outcome = PersistOutcome(
                url=url, path=relative, status=PersistStatus.SKIPPED,
                reason=REASON_FILE_EXISTS, record=record,
            )
            logger.debug(f"Asset already on disk, not overwriting: {relative}")
        else:
            try:
                await write_atomic(target, body)
            except OSError as e:
                self._failures += 1
                logger.warning(f"Failed to write asset {url} -> {relative}: {e}")
                outcome = PersistOutcome(
                    url=url, path=relative, status=PersistStatus.FAILED,
                    reason=f"Write failed: {e}",
                )
            else:
                record = self._make_record(url, target, relative, role, len(body))
                self.mapping[url] = record
                self._handled.add(key)
                self._bytes_written += len(body)
                outcome = PersistOutcome(
                    url=url, path=relative, status=PersistStatus.DOWNLOADED, record=record,
                )
                logger.debug(f"Saved asset {url} -> {relative} ({len(body)} bytes)")

        self._report(outcome, target)
        return outcome

    async def write_text(self, relative: str, text: str) -> Path:
        """Write a text file under the asset root, replacing any existing file.

        Args:
            relative: Path relative to the asset root
            text: File contents

        Returns:
            Absolute path written
        """
        segments = [s for s in relative.split('/') if s not in ('', '.', '..')]
        target = self.assets_root.joinpath(*segments)
        await write_atomic(target, text.encode('utf-8'))
        return target

    def _make_record(
        self,
        url: str,
        target: Path,
        relative: str,
        role: ResourceRole,
        size: int,
    ) -> AssetRecord:
        classification = self.classifier.classify_url(url)
        if classification.is_static:
            extension = classification.extension
            file_type = classification.file_type
            mime_type = classification.mime_type
        else:
            extension = get_file_extension(relative.lower()) or ''
            file_type = get_file_type(extension)
            mime_type = get_mime_type(extension)

        return AssetRecord(
            url=url,
            local_path=target,
            relative_path=relative,
            role=role,
            size=size,
            file_type=file_type,
            extension=extension,
            mime_type=mime_type,
        )

    def _report(self, outcome: PersistOutcome, target: Path) -> None:
        snapshot = self.reporter.record(outcome.status, target.name)
        status = "downloaded" if outcome.status == PersistStatus.DOWNLOADED else "skipped"
        self.reporter.emit(SavedResourceEvent(
            saved_resource=outcome.url,
            path=str(target),
            status=status,
            reason=outcome.reason,
            progress=snapshot,
        ))

    def get_mapping(self) -> Dict[str, AssetRecord]:
        """Get a copy of the remote URL to local file mapping."""
        return dict(self.mapping)

    def get_stats(self) -> Dict[str, int]:
        """Get persistence statistics."""
        return {
            'mapped_urls': len(self.mapping),
            'handled': len(self._handled),
            'bytes_written': self._bytes_written,
            'failures': self._failures,
        }

    def __repr__(self) -> str:
        return f"AssetStore(root={self.assets_root}, mapped={len(self.mapping)})"
