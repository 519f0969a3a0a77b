"""Unit tests for clone data models."""

import pytest
from pydantic import ValidationError

from webcloner.models import (
    ApiLogEntry,
    CapturedResponse,
    CloneRequest,
    CloneResult,
    CookieInput,
    NetworkHints,
    ProgressSnapshot,
    ResourceRole,
    ResponseOutcome,
    SavedResourceEvent,
    WebSocketFrameEntry,
)


class TestResourceRole:
    """Test cases for ResourceRole enum."""

    def test_from_playwright(self):
        assert ResourceRole.from_playwright("stylesheet") == ResourceRole.STYLESHEET
        assert ResourceRole.from_playwright("XHR") == ResourceRole.XHR
        assert ResourceRole.from_playwright("ping") == ResourceRole.OTHER
        assert ResourceRole.from_playwright(None) == ResourceRole.OTHER


class TestCloneRequest:
    """Test cases for CloneRequest model."""

    def test_wire_aliases(self, tmp_path):
        request = CloneRequest.model_validate({
            'url': "https://example.com/",
            'outputDir': str(tmp_path),
            'networkData': {'resources': [{'url': "https://example.com/a.css"}]},
            'cookies': [{'name': "sid", 'value': "1", 'sameSite': "strict"}],
        })

        assert request.output_dir == tmp_path
        assert request.filename == "index.html"
        assert request.network_data.resources[0].url == "https://example.com/a.css"
        assert request.cookies[0].same_site == "strict"

    def test_url_must_be_http(self, tmp_path):
        with pytest.raises(ValidationError):
            CloneRequest(url="ftp://example.com/", output_dir=tmp_path)
        with pytest.raises(ValidationError):
            CloneRequest(url="/relative/path", output_dir=tmp_path)

    def test_url_required_for_capture(self, tmp_path):
        with pytest.raises(ValidationError):
            CloneRequest(output_dir=tmp_path)

    def test_html_required_in_html_only_mode(self, tmp_path):
        with pytest.raises(ValidationError):
            CloneRequest(output_dir=tmp_path, html_only=True)

        request = CloneRequest(output_dir=tmp_path, html_only=True, html="")
        assert request.html == ""

    def test_filename_must_be_plain(self, tmp_path):
        for filename in ["../escape.html", "sub/index.html", "..", ""]:
            with pytest.raises(ValidationError):
                CloneRequest(url="https://example.com/", output_dir=tmp_path, filename=filename)


class TestCookieInput:
    """Test cases for CookieInput model."""

    def test_extension_export_shape(self):
        cookie = CookieInput.model_validate({
            'name': "sid",
            'value': "abc",
            'httpOnly': True,
            'expirationDate': 1700000000.5,
        })

        assert cookie.http_only is True
        assert cookie.expiration_date == 1700000000.5
        assert cookie.secure is False

    def test_populate_by_name(self):
        cookie = CookieInput(name="a", http_only=True)

        assert cookie.http_only is True
        assert cookie.value == ""


class TestApiLogEntry:
    """Test cases for ApiLogEntry model."""

    def test_to_wire(self):
        entry = ApiLogEntry(
            timestamp="2024-01-01T00:00:00.000Z",
            method="GET",
            url="https://x.com/api/me",
            status=200,
            response_text="{}",
        )

        assert entry.to_wire() == {
            'timestamp': "2024-01-01T00:00:00.000Z",
            'method': "GET",
            'url': "https://x.com/api/me",
            'headers': {},
            'status': 200,
            'responseText': "{}",
        }

    def test_frozen(self):
        entry = ApiLogEntry(timestamp="t", method="GET", url="https://x.com/api")

        with pytest.raises(ValidationError):
            entry.url = "https://x.com/other"


class TestWebSocketFrameEntry:
    """Test cases for WebSocketFrameEntry model."""

    def test_direction_validation(self):
        assert WebSocketFrameEntry(type="recv", timestamp=1.0, id="1").op == 1

        with pytest.raises(ValidationError):
            WebSocketFrameEntry(type="incoming", timestamp=1.0, id="1")


class TestNetworkHints:
    """Test cases for NetworkHints model."""

    def test_iter_urls(self):
        hints = NetworkHints.model_validate({
            'resources': [
                {'url': "https://x.com/a.css"},
                {'name': "https://x.com/b.png"},
                {'size': 12},
            ],
            'requests': [{'url': "https://x.com/api/items", 'method': "post"}],
        })

        assert list(hints.iter_urls()) == [
            ("https://x.com/a.css", "GET"),
            ("https://x.com/b.png", "GET"),
            ("https://x.com/api/items", "POST"),
        ]


class TestCapturedResponse:
    """Test cases for CapturedResponse model."""

    def test_is_data_url(self):
        data = CapturedResponse(url="data:image/png;base64,AA", role=ResourceRole.IMAGE, outcome=ResponseOutcome.FAILED)
        remote = CapturedResponse(url="https://x.com/a.png", role=ResourceRole.IMAGE, outcome=ResponseOutcome.BYTES)

        assert data.is_data_url
        assert not remote.is_data_url


class TestResultAndEvents:
    """Test cases for wire shapes of results and progress events."""

    def test_clone_result_to_wire(self, tmp_path):
        result = CloneResult(
            saved_full_path=tmp_path / "assets" / "index.html",
            saved_relative_path="index.html",
            assets_downloaded=3,
        )

        assert result.to_wire() == {
            'savedFullPath': str(tmp_path / "assets" / "index.html"),
            'savedRelativePath': "index.html",
        }

    def test_saved_resource_event(self):
        event = SavedResourceEvent(
            saved_resource="https://x.com/a.png",
            path="/out/assets/a.png",
            status="downloaded",
            progress=ProgressSnapshot(
                total=2, processed=1, downloaded=1, skipped=0,
                percentage=50.0, current_file="a.png",
            ),
        )

        assert event.to_wire() == {
            'savedResource': "https://x.com/a.png",
            'path': "/out/assets/a.png",
            'status': "downloaded",
            'progress': {
                'total': 2,
                'processed': 1,
                'downloaded': 1,
                'skipped': 0,
                'percentage': 50.0,
                'currentFile': "a.png",
                'currentFileProgress': 100,
            },
        }
