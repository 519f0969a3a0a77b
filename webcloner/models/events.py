"""Progress event payloads streamed to pipeline observers.

Each model dumps to the camelCase dictionary shape observers expect via
``to_wire()``.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProgressSnapshot(BaseModel):
    """Self-contained view of the progress counters."""

    total: int = Field(description="Resources expected or seen so far")
    processed: int = Field(description="Resources handled")
    downloaded: int = Field(description="Resources written to disk")
    skipped: int = Field(description="Resources not written")
    percentage: float = Field(description="Completion percentage, 0-100")
    current_file: Optional[str] = Field(
        default=None,
        alias="currentFile",
        description="Basename of the last handled file"
    )
    current_file_progress: int = Field(
        default=100,
        alias="currentFileProgress",
        description="Progress of the current file, 0-100"
    )

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        frozen = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class CookiesAppliedEvent(BaseModel):
    cookies_applied: int = Field(alias="cookiesApplied")

    class Config:
        populate_by_name = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ApiCapturedEvent(BaseModel):
    api_captured: str = Field(alias="apiCaptured")

    class Config:
        populate_by_name = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SkippedResourceEvent(BaseModel):
    """A resource dropped before persistence (data URL, empty body)."""

    skipped_resource: str = Field(alias="skippedResource")
    reason: str

    class Config:
        populate_by_name = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SavedResourceEvent(BaseModel):
    """A resource handed to the asset store, with a progress snapshot."""

    saved_resource: str = Field(alias="savedResource")
    path: str
    status: str
    reason: Optional[str] = None
    progress: ProgressSnapshot

    class Config:
        populate_by_name = True

    def to_wire(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True)
        payload["progress"] = self.progress.to_wire()
        return payload
