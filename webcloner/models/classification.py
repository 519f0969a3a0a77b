"""Pydantic models for URL classification results."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class UrlType(str, Enum):
    """Classification verdict for a URL."""
    API_REQUEST = "api_request"
    STATIC_FILE = "static_file"
    UNKNOWN = "unknown"


class Classification(BaseModel):
    """Result of scoring a URL as an API call or a static asset."""

    type: UrlType = Field(description="Winning classification")
    confidence: float = Field(
        default=0.0,
        description="Sum of signal weights for the winning side (unbounded)"
    )
    reasons: List[str] = Field(
        default_factory=list,
        description="Signals that contributed to the winning side"
    )
    reason: str = Field(default="", description="Human readable summary")
    api_signals: Dict[str, float] = Field(
        default_factory=dict,
        description="All API-side signals with their weights"
    )
    static_signals: Dict[str, float] = Field(
        default_factory=dict,
        description="All static-side signals with their weights"
    )
    file_type: Optional[str] = Field(
        default=None,
        description="Coarse file type for static files"
    )
    extension: Optional[str] = Field(
        default=None,
        description="Extension including the leading dot"
    )
    mime_type: Optional[str] = Field(
        default=None,
        description="MIME type derived from the extension"
    )

    @property
    def is_api(self) -> bool:
        return self.type == UrlType.API_REQUEST

    @property
    def is_static(self) -> bool:
        return self.type == UrlType.STATIC_FILE

    @property
    def api_score(self) -> float:
        return sum(self.api_signals.values())

    @property
    def static_score(self) -> float:
        return sum(self.static_signals.values())
