"""Unit tests for API and WebSocket log output."""

import json

import pytest

from webcloner.models.capture import ApiLogEntry, WebSocketFrameEntry
from webcloner.persistence.log_writer import (
    API_LOG_FILENAME,
    WS_LOG_FILENAME,
    CaptureLogWriter,
    api_log_filename,
)


class TestApiLogFilename:
    """Tests for api_log_filename."""

    def test_uri_component_encoding(self):
        assert api_log_filename("https://x.com/api?a=1") == "https_3A_2F_2Fx.com_2Fapi_3Fa_3D1.json"

    def test_unreserved_marks_kept(self):
        assert api_log_filename("https://x.com/it's(1)!*~") == "https_3A_2F_2Fx.com_2Fit's(1)!*~.json"

    def test_truncation(self):
        url = "https://x.com/" + "a" * 500

        name = api_log_filename(url)

        assert len(name) == 230 + len(".json")
        assert name.endswith(".json")

    def test_custom_max_length(self):
        assert api_log_filename("https://x.com/abc", max_length=5) == "https.json"


class TestCaptureLogWriter:
    """Tests for CaptureLogWriter class."""

    @pytest.fixture
    def api_entries(self):
        return [
            ApiLogEntry(
                timestamp="2024-01-01T00:00:00.000Z",
                method="POST",
                url="https://x.com/api/login",
                headers={"content-type": "application/json"},
                post_data='{"user": "a"}',
                status=200,
                response_text='{"ok": true}',
                classification="api_request",
                confidence=1.4,
            ),
            ApiLogEntry(
                timestamp="2024-01-01T00:00:01.000Z",
                method="GET",
                url="https://x.com/api/me",
                status=200,
            ),
        ]

    @pytest.fixture
    def ws_frames(self):
        return [
            WebSocketFrameEntry(type="sent", timestamp=1.0, id="1", data="ping"),
            WebSocketFrameEntry(type="recv", timestamp=2.0, id="1", data="pong"),
        ]

    @pytest.mark.asyncio
    async def test_write_logs(self, tmp_path, api_entries, ws_frames):
        logs_dir = tmp_path / "logs"
        writer = CaptureLogWriter(logs_dir)

        counts = await writer.write_logs(api_entries, ws_frames)

        assert counts == {'api_entries': 2, 'ws_frames': 2, 'per_request_files': 2}

        combined = json.loads((logs_dir / API_LOG_FILENAME).read_text(encoding="utf-8"))
        assert [entry['url'] for entry in combined] == ["https://x.com/api/login", "https://x.com/api/me"]
        assert combined[0]['postData'] == '{"user": "a"}'
        assert combined[0]['responseText'] == '{"ok": true}'
        assert 'postData' not in combined[1]

        frames = json.loads((logs_dir / WS_LOG_FILENAME).read_text(encoding="utf-8"))
        assert frames[0] == {'type': "sent", 'timestamp': 1.0, 'id': "1", 'data': "ping", 'op': 1}

        per_request = logs_dir / api_log_filename("https://x.com/api/login")
        assert json.loads(per_request.read_text(encoding="utf-8"))['method'] == "POST"

    @pytest.mark.asyncio
    async def test_empty_logs_still_written(self, tmp_path):
        writer = CaptureLogWriter(tmp_path / "logs")

        counts = await writer.write_logs([], [])

        assert counts['api_entries'] == 0
        assert json.loads((tmp_path / "logs" / API_LOG_FILENAME).read_text()) == []
        assert json.loads((tmp_path / "logs" / WS_LOG_FILENAME).read_text()) == []
