"""Utility helpers for the clone pipeline."""

from .url_normalizer import (
    URLNormalizationError,
    is_data_url,
    is_valid_http_url,
    get_hostname,
    get_base_url,
    resolve_reference,
    get_extension,
    relative_path,
)
from .files import write_atomic, read_text, write_text_atomic

__all__ = [
    'URLNormalizationError',
    'is_data_url',
    'is_valid_http_url',
    'get_hostname',
    'get_base_url',
    'resolve_reference',
    'get_extension',
    'relative_path',
    'write_atomic',
    'read_text',
    'write_text_atomic',
]
