"""Unit tests for asset persistence and path mapping."""

import pytest

from webcloner.models.capture import PersistStatus, ResourceRole
from webcloner.persistence.asset_store import (
    REASON_FILE_EXISTS,
    REASON_URL_EXISTS,
    AssetStore,
    derive_relative_path,
)


class TestDeriveRelativePath:
    """Tests for derive_relative_path."""

    def test_mirrors_url_path(self):
        assert derive_relative_path("https://x.com/css/site.css?v=3#top", ResourceRole.STYLESHEET) == "css/site.css"

    def test_trailing_slash_gets_index(self):
        assert derive_relative_path("https://x.com/about/", ResourceRole.DOCUMENT) == "about/index.html"
        assert derive_relative_path("https://x.com/", ResourceRole.DOCUMENT) == "index.html"

    def test_extensionless_document_gets_html(self):
        assert derive_relative_path("https://x.com/about", ResourceRole.DOCUMENT) == "about.html"
        assert derive_relative_path("https://x.com/about", ResourceRole.IMAGE) == "about"

    def test_traversal_segments_are_dropped(self):
        assert derive_relative_path("https://x.com/a/../../etc/passwd", "other") == "a/etc/passwd"
        assert derive_relative_path("https://x.com/./a//b.js", "script") == "a/b.js"

    def test_idempotent(self):
        url = "https://x.com/img/logo.png?x=1"
        assert derive_relative_path(url, ResourceRole.IMAGE) == derive_relative_path(url, ResourceRole.IMAGE)


class TestAssetStore:
    """Tests for AssetStore class."""

    @pytest.mark.asyncio
    async def test_persist_writes_file_and_mapping(self, store, output_dir):
        outcome = await store.persist("https://x.com/img/logo.png", b"PNG", ResourceRole.IMAGE)

        target = output_dir / "assets" / "img" / "logo.png"
        assert outcome.status == PersistStatus.DOWNLOADED
        assert outcome.path == "img/logo.png"
        assert target.read_bytes() == b"PNG"

        record = store.get_mapping()["https://x.com/img/logo.png"]
        assert record.local_path == target
        assert record.relative_path == "img/logo.png"
        assert record.file_type == "image"
        assert record.mime_type == "image/png"
        assert record.size == 3

    @pytest.mark.asyncio
    async def test_same_url_written_once(self, store, output_dir):
        """A second payload for the same URL never reaches the disk."""
        first = await store.persist("https://x.com/app.js", b"first", ResourceRole.SCRIPT)
        second = await store.persist("https://x.com/app.js", b"second", ResourceRole.SCRIPT)

        assert first.status == PersistStatus.DOWNLOADED
        assert second.status == PersistStatus.SKIPPED
        assert second.reason == REASON_URL_EXISTS
        assert (output_dir / "assets" / "app.js").read_bytes() == b"first"

    @pytest.mark.asyncio
    async def test_existing_file_not_overwritten(self, output_dir, classifier, reporter):
        target = output_dir / "assets" / "app.js"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"from a previous session")

        store = AssetStore(output_dir, classifier=classifier, reporter=reporter)
        outcome = await store.persist("https://x.com/app.js", b"new", ResourceRole.SCRIPT)

        assert outcome.status == PersistStatus.SKIPPED
        assert outcome.reason == REASON_FILE_EXISTS
        assert target.read_bytes() == b"from a previous session"
        assert "https://x.com/app.js" in store.mapping

    @pytest.mark.asyncio
    async def test_query_variants_share_a_file(self, store, output_dir):
        await store.persist("https://x.com/a.css?v=1", b"one", ResourceRole.STYLESHEET)
        outcome = await store.persist("https://x.com/a.css?v=2", b"two", ResourceRole.STYLESHEET)

        assert outcome.status == PersistStatus.SKIPPED
        assert outcome.reason == REASON_FILE_EXISTS
        assert set(store.mapping) == {"https://x.com/a.css?v=1", "https://x.com/a.css?v=2"}
        assert (output_dir / "assets" / "a.css").read_bytes() == b"one"

    @pytest.mark.asyncio
    async def test_progress_events(self, store, events):
        await store.persist("https://x.com/a.png", b"1", ResourceRole.IMAGE)
        await store.persist("https://x.com/a.png", b"1", ResourceRole.IMAGE)

        assert [event['status'] for event in events] == ["downloaded", "skipped"]
        assert events[0]['savedResource'] == "https://x.com/a.png"
        assert events[0]['path'].endswith("a.png")
        assert 'reason' not in events[0]
        assert events[1]['reason'] == REASON_URL_EXISTS

        progress = events[1]['progress']
        assert progress['processed'] == 2
        assert progress['downloaded'] == 1
        assert progress['skipped'] == 1
        assert progress['currentFile'] == "a.png"
        assert progress['currentFileProgress'] == 100

    @pytest.mark.asyncio
    async def test_write_failure_is_reported_not_raised(self, output_dir, classifier, reporter, events):
        # A file where a directory is needed makes the write fail
        (output_dir / "assets").mkdir()
        (output_dir / "assets" / "img").write_bytes(b"not a directory")

        store = AssetStore(output_dir, classifier=classifier, reporter=reporter)
        outcome = await store.persist("https://x.com/img/a.png", b"1", ResourceRole.IMAGE)

        assert outcome.status == PersistStatus.FAILED
        assert outcome.reason.startswith("Write failed")
        assert "https://x.com/img/a.png" not in store.mapping
        assert events[-1]['status'] == "skipped"
        assert store.get_stats()['failures'] == 1

    @pytest.mark.asyncio
    async def test_write_text_replaces(self, store, output_dir):
        await store.write_text("index.html", "<p>one</p>")
        path = await store.write_text("index.html", "<p>two</p>")

        assert path == output_dir / "assets" / "index.html"
        assert path.read_text(encoding="utf-8") == "<p>two</p>"
