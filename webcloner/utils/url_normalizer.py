"""URL helpers shared by the extractor, asset store and rewriters.

This module provides the small set of URL operations the clone pipeline
needs: validation, hostname extraction, reference resolution against a
base URL, and relative path computation between local files.
"""

import os
import posixpath
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urljoin, urlparse, urlunparse


class URLNormalizationError(Exception):
    """Raised when a URL cannot be parsed or resolved."""
    pass


def is_data_url(url: str) -> bool:
    """Check whether a URL is an inline ``data:`` URI."""
    return isinstance(url, str) and url.strip().lower().startswith("data:")


def is_valid_http_url(url: str) -> bool:
    """Check if URL is a valid absolute HTTP/HTTPS URL.

    Args:
        url: URL to check

    Returns:
        True if URL is valid HTTP/HTTPS
    """
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
        return parsed.scheme.lower() in ('http', 'https') and bool(parsed.netloc)
    except ValueError:
        return False


def get_hostname(url: str) -> Optional[str]:
    """Return the lowercased hostname of a URL, or None if it has none."""
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def get_base_url(url: str) -> str:
    """Extract base URL (scheme + netloc) from a URL.

    Args:
        url: URL to extract base from

    Returns:
        Base URL string

    Raises:
        URLNormalizationError: If the URL has no scheme or host
    """
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise URLNormalizationError(f"Cannot extract base URL from: {url}")
    return urlunparse((parsed.scheme, parsed.netloc, '', '', '', ''))


def resolve_reference(reference: str, base_url: str) -> str:
    """Resolve a (possibly relative) reference against a base URL.

    Args:
        reference: Raw reference as found in HTML or CSS
        base_url: URL of the document containing the reference

    Returns:
        Absolute URL with the fragment removed

    Raises:
        URLNormalizationError: If the reference cannot be resolved
    """
    if not isinstance(reference, str):
        raise URLNormalizationError(f"Reference must be a string, got {type(reference).__name__}")

    reference = reference.strip()
    if not reference:
        raise URLNormalizationError("Reference cannot be empty")

    try:
        absolute = urljoin(base_url, reference)
        parsed = urlparse(absolute)
    except ValueError as e:
        raise URLNormalizationError(f"Cannot resolve {reference!r} against {base_url!r}: {e}")

    if not parsed.scheme or not parsed.netloc:
        raise URLNormalizationError(f"Resolved reference is not absolute: {absolute}")

    return urlunparse(parsed._replace(fragment=''))


def get_extension(path: str) -> str:
    """Return the lowercased extension of the last path segment, including the dot."""
    return posixpath.splitext(posixpath.basename(path))[1].lower()


def relative_path(target: Union[str, Path], start_dir: Union[str, Path]) -> str:
    """Compute the POSIX-style path of ``target`` relative to ``start_dir``.

    Args:
        target: Local file being referenced
        start_dir: Directory of the referencing document

    Returns:
        Relative path using forward slashes
    """
    rel = os.path.relpath(os.fspath(target), os.fspath(start_dir))
    return Path(rel).as_posix()
