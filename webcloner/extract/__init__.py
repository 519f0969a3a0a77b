"""Static reference extraction package."""

from .static_extractor import (
    StaticReference,
    SkippedReference,
    StaticAnalysis,
    extract_static_references,
    is_in_scope,
    SKIP_REASON_DATA_URL,
    SKIP_REASON_EXTERNAL,
)

__all__ = [
    'StaticReference',
    'SkippedReference',
    'StaticAnalysis',
    'extract_static_references',
    'is_in_scope',
    'SKIP_REASON_DATA_URL',
    'SKIP_REASON_EXTERNAL',
]
