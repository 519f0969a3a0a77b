"""Pydantic models for clone capture sessions and their artifacts.

This module defines the data models used by the clone pipeline: cookie
input, captured network responses, persisted asset records, API and
WebSocket log entries, network hints, and the pipeline request/result pair.
Wire names (camelCase) are exposed through field aliases.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator


class ResourceRole(str, Enum):
    """Browser-reported role of a network response."""
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    MEDIA = "media"
    FONT = "font"
    SCRIPT = "script"
    TEXTTRACK = "texttrack"
    XHR = "xhr"
    FETCH = "fetch"
    EVENTSOURCE = "eventsource"
    WEBSOCKET = "websocket"
    MANIFEST = "manifest"
    OTHER = "other"

    @classmethod
    def from_playwright(cls, resource_type: Optional[str]) -> "ResourceRole":
        """Map a Playwright ``request.resource_type`` string to a role."""
        try:
            return cls((resource_type or "other").lower())
        except ValueError:
            return cls.OTHER


# Roles whose bodies are persisted as files
ASSET_ROLES = frozenset({
    ResourceRole.STYLESHEET,
    ResourceRole.SCRIPT,
    ResourceRole.IMAGE,
    ResourceRole.FONT,
    ResourceRole.DOCUMENT,
    ResourceRole.OTHER,
})

# Roles whose bodies are recorded as API log entries
API_ROLES = frozenset({ResourceRole.XHR, ResourceRole.FETCH})


class ResponseOutcome(str, Enum):
    """Result of reading a response body."""
    BYTES = "bytes"
    TEXT = "text"
    FAILED = "failed"


class PersistStatus(str, Enum):
    """Outcome of an asset persistence attempt."""
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    FAILED = "failed"


class CaptureStatus(str, Enum):
    """Overall status of a capture session."""
    SUCCESS = "success"
    PARTIAL = "partial"


class CookieInput(BaseModel):
    """Cookie supplied by the caller, in browser-extension export shape."""

    name: str = Field(description="Cookie name")
    value: str = Field(default="", description="Cookie value")
    domain: Optional[str] = Field(default=None, description="Cookie domain, may start with '.'")
    path: Optional[str] = Field(default=None, description="Cookie path")
    http_only: bool = Field(default=False, alias="httpOnly", description="HttpOnly flag")
    secure: bool = Field(default=False, description="Secure flag")
    same_site: Optional[str] = Field(default=None, alias="sameSite", description="SameSite policy")
    expiration_date: Optional[float] = Field(
        default=None,
        alias="expirationDate",
        description="Expiry as epoch seconds (may be fractional)"
    )

    class Config:
        """Pydantic configuration."""
        populate_by_name = True


class CapturedResponse(BaseModel):
    """A network response after its body has been read (or failed to read)."""

    url: str = Field(description="Remote URL")
    method: str = Field(default="GET", description="HTTP method")
    role: ResourceRole = Field(description="Resource role reported by the browser")
    status: Optional[int] = Field(default=None, description="HTTP status code")
    headers: Dict[str, str] = Field(default_factory=dict, description="Response headers")
    request_headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    request_body: Optional[str] = Field(default=None, description="Request body, if any")
    outcome: ResponseOutcome = Field(description="How the body read ended")
    body: Optional[bytes] = Field(default=None, description="Raw body for asset roles")
    text: Optional[str] = Field(default=None, description="Decoded body for API roles")
    error: Optional[str] = Field(default=None, description="Reason the body read failed")
    observed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the response was observed"
    )

    @property
    def is_data_url(self) -> bool:
        return self.url.startswith("data:")


class AssetRecord(BaseModel):
    """Remote URL to local file mapping entry."""

    url: str = Field(description="Remote URL (mapping key)")
    local_path: Path = Field(description="Absolute local path of the saved file")
    relative_path: str = Field(description="Path relative to the asset root, POSIX separators")
    role: ResourceRole = Field(description="Resource role the file was saved under")
    size: int = Field(default=0, description="Byte size of the saved body")
    file_type: Optional[str] = Field(default=None, description="Classifier file type")
    extension: Optional[str] = Field(default=None, description="File extension")
    mime_type: Optional[str] = Field(default=None, description="MIME type")


class PersistOutcome(BaseModel):
    """Result of handing one asset to the asset store."""

    url: str = Field(description="Remote URL")
    path: str = Field(description="Path relative to the asset root")
    status: PersistStatus = Field(description="What happened to the body")
    reason: Optional[str] = Field(default=None, description="Why the asset was skipped or failed")
    record: Optional[AssetRecord] = Field(default=None, description="Mapping entry, if recorded")


class ApiLogEntry(BaseModel):
    """Immutable record of an xhr/fetch exchange."""

    timestamp: str = Field(description="ISO-8601 capture time")
    method: str = Field(description="HTTP method")
    url: str = Field(description="Request URL")
    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers")
    post_data: Optional[str] = Field(default=None, alias="postData", description="Request body")
    status: Optional[int] = Field(default=None, description="Response status code")
    response_text: str = Field(default="", alias="responseText", description="Response body text")
    classification: Optional[str] = Field(
        default=None,
        description="Classifier verdict for the URL"
    )
    confidence: Optional[float] = Field(default=None, description="Classifier confidence")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        frozen = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class WebSocketFrameEntry(BaseModel):
    """A single WebSocket frame observed on the page."""

    type: str = Field(description="'sent' or 'recv'")
    timestamp: float = Field(description="Epoch milliseconds")
    id: str = Field(description="Connection identifier")
    data: str = Field(default="", description="Frame payload")
    op: int = Field(default=1, description="WebSocket opcode")

    @field_validator("type")
    @classmethod
    def validate_direction(cls, v):
        if v not in ("sent", "recv"):
            raise ValueError("Frame type must be 'sent' or 'recv'")
        return v


class HintResource(BaseModel):
    """Resource seen during a passive observation phase."""

    url: Optional[str] = Field(default=None, description="Resource URL")
    name: Optional[str] = Field(default=None, description="Resource name (performance entry)")
    size: Optional[int] = Field(default=None, description="Transfer size, if known")

    @property
    def location(self) -> Optional[str]:
        return self.url or self.name


class HintRequest(BaseModel):
    """Request seen during a passive observation phase."""

    url: str = Field(description="Request URL")
    method: str = Field(default="GET", description="HTTP method")


class NetworkHints(BaseModel):
    """Seed resources and requests collected before the clone started."""

    resources: List[HintResource] = Field(default_factory=list)
    requests: List[HintRequest] = Field(default_factory=list)

    def iter_urls(self) -> Iterator[Tuple[str, str]]:
        """Yield (url, method) pairs for every hint with a usable location."""
        for resource in self.resources:
            if resource.location:
                yield resource.location, "GET"
        for request in self.requests:
            yield request.url, request.method.upper()


class PageSnapshot(BaseModel):
    """Final state of the page after navigation settled."""

    url: str = Field(description="Requested URL")
    final_url: str = Field(description="URL after redirects")
    html: str = Field(description="Serialized DOM")
    capture_status: CaptureStatus = Field(default=CaptureStatus.SUCCESS)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = Field(default=None, description="Non-fatal navigation problem")


class CloneRequest(BaseModel):
    """Pipeline invocation parameters."""

    url: str = Field(default="", description="Target page URL")
    output_dir: Path = Field(alias="outputDir", description="Output root directory")
    filename: str = Field(default="index.html", description="Output HTML filename")
    cookies: List[CookieInput] = Field(default_factory=list, description="Cookies to inject")
    network_data: Optional[NetworkHints] = Field(
        default=None,
        alias="networkData",
        description="Seed hints from a prior observation phase"
    )
    html_only: bool = Field(default=False, alias="htmlOnly", description="Only write the given HTML")
    html: Optional[str] = Field(default=None, description="HTML to write in html-only mode")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        if not v:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"URL must be an absolute http(s) URL: {v}")
        return v

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v):
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Filename must be a plain file name: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_mode(self):
        if self.html_only:
            if self.html is None:
                raise ValueError("html is required when html_only is set")
        elif not self.url:
            raise ValueError("url is required for a capture")
        return self


class CloneResult(BaseModel):
    """Pipeline result."""

    saved_full_path: Path = Field(alias="savedFullPath", description="Absolute path of the HTML file")
    saved_relative_path: str = Field(alias="savedRelativePath", description="HTML file name")
    capture_status: CaptureStatus = Field(default=CaptureStatus.SUCCESS)
    assets_downloaded: int = Field(default=0)
    assets_skipped: int = Field(default=0)
    api_entries: int = Field(default=0)
    ws_frames: int = Field(default=0)

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    def to_wire(self) -> Dict[str, Any]:
        return {
            "savedFullPath": str(self.saved_full_path),
            "savedRelativePath": self.saved_relative_path,
        }
