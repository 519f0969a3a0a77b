"""Shared test fixtures and configuration for Web Cloner tests."""

import pytest
from pathlib import Path
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock
import sys

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from webcloner.classify.url_classifier import URLClassifier
from webcloner.models.capture import AssetRecord, ResourceRole
from webcloner.persistence.asset_store import AssetStore
from webcloner.reporting.progress import ProgressReporter


def make_response(
    url: str,
    resource_type: str = "image",
    method: str = "GET",
    body: bytes = b"data",
    text: str = "",
    status: int = 200,
    post_data: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> MagicMock:
    """Build a mock Playwright response with a fully populated request."""
    request = MagicMock()
    request.url = url
    request.method = method
    request.resource_type = resource_type
    request.headers = headers or {"accept": "*/*"}
    request.post_data = post_data

    response = MagicMock()
    response.url = url
    response.status = status
    response.headers = {"content-type": "application/octet-stream"}
    response.request = request
    response.body = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=text)
    return response


def make_record(url: str, local_path: Path, relative: str, role: ResourceRole = ResourceRole.IMAGE) -> AssetRecord:
    """Build a mapping entry without touching the disk."""
    return AssetRecord(url=url, local_path=local_path, relative_path=relative, role=role)


@pytest.fixture
def response_factory():
    """Factory for mock Playwright responses."""
    return make_response


@pytest.fixture
def record_factory():
    """Factory for asset records."""
    return make_record


@pytest.fixture
def classifier():
    """Fresh session classifier."""
    return URLClassifier()


@pytest.fixture
def events():
    """List collecting every emitted progress payload."""
    return []


@pytest.fixture
def reporter(events):
    """Progress reporter recording its payloads into ``events``."""
    progress = ProgressReporter()
    progress.add_callback(events.append)
    return progress


@pytest.fixture
def output_dir(tmp_path):
    """Empty output root."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def store(output_dir, classifier, reporter):
    """Asset store writing under the temporary output root."""
    return AssetStore(output_dir, classifier=classifier, reporter=reporter)


@pytest.fixture
def mock_page():
    """Mock Playwright page with a context that accepts cookies."""
    page = AsyncMock()
    page.on = MagicMock()
    page.remove_listener = MagicMock()
    page.url = "https://example.com/"
    page.content.return_value = "<html><body>ok</body></html>"
    page.context = MagicMock()
    page.context.add_cookies = AsyncMock()
    page.context.new_cdp_session = AsyncMock()
    return page


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
