"""URL classification package."""

from .url_classifier import (
    URLClassifier,
    get_file_extension,
    get_file_type,
    get_mime_type,
    is_cdn_host,
)

__all__ = [
    'URLClassifier',
    'get_file_extension',
    'get_file_type',
    'get_mime_type',
    'is_cdn_host',
]
