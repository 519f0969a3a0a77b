"""URL classification for captured network traffic.

This module provides the URLClassifier class that scores a URL as either an
API request or a static file using independent weighted signals. Scores are
plain sums of signal weights and are not normalized; the higher side wins,
and a tie (including zero on both sides) yields ``unknown``.
"""

import logging
import re
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from ..models.classification import Classification, UrlType

logger = logging.getLogger(__name__)


API_PATTERNS = [
    '/api/', '/v1/', '/v2/', '/v3/', '/v4/', '/v5/',
    '/rest/', '/graphql/', '/rpc/', '/service/',
    '/endpoint/', '/controller/', '/handler/',
    '/auth/', '/login/', '/logout/', '/register/',
    '/user/', '/users/', '/admin/', '/dashboard/',
    '/data/', '/query/', '/search/', '/filter/',
    '/upload/', '/download/', '/export/', '/import/',
]

STATIC_FILE_EXTENSIONS = frozenset({
    '.html', '.htm', '.css', '.js', '.mjs', '.json', '.xml',
    '.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp', '.ico', '.bmp',
    '.woff', '.woff2', '.ttf', '.eot', '.otf',
    '.pdf', '.txt', '.csv', '.zip', '.rar', '.tar', '.gz',
    '.mp3', '.mp4', '.avi', '.mov', '.wav', '.ogg',
    '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
})

STATIC_DIRECTORIES = ('/assets/', '/static/', '/public/', '/resources/')

CDN_HOST_MARKERS = (
    'cdn.', 'cdnjs.', 'unpkg.', 'jsdelivr.', 'googleapis.', 'gstatic.',
    'cloudflare.', 'bootstrapcdn.', 'fontawesome.', 'jquery.',
    'ajax.googleapis.', 'fonts.googleapis.', 'fonts.gstatic.',
)

MUTATING_METHODS = frozenset({'POST', 'PUT', 'PATCH', 'DELETE'})

FILE_TYPES = {
    '.html': 'html', '.htm': 'html',
    '.css': 'css',
    '.js': 'javascript', '.mjs': 'javascript',
    '.json': 'json',
    '.png': 'image', '.jpg': 'image', '.jpeg': 'image',
    '.gif': 'image', '.svg': 'image', '.webp': 'image',
    '.woff': 'font', '.woff2': 'font', '.ttf': 'font', '.eot': 'font',
    '.pdf': 'document',
    '.txt': 'text',
    '.csv': 'data',
}

MIME_TYPES = {
    '.html': 'text/html',
    '.css': 'text/css',
    '.js': 'application/javascript',
    '.json': 'application/json',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.svg': 'image/svg+xml',
    '.pdf': 'application/pdf',
    '.txt': 'text/plain',
    '.woff': 'font/woff',
    '.woff2': 'font/woff2',
    '.ttf': 'font/ttf',
}

DEFAULT_MIME_TYPE = 'application/octet-stream'

_EXTENSION_RE = re.compile(r'\.([a-zA-Z0-9]+)(?:\?|$)')
_NUMERIC_ID_RE = re.compile(r'/(\d+)$')
_HEX_ID_RE = re.compile(r'/([a-f0-9-]{8,})$')
_VERSIONED_RE = re.compile(r'/(v\d+/|version/|\d+\.\d+\.\d+/)')


def get_file_extension(pathname: str) -> Optional[str]:
    """Extract the extension from a lowercased URL path.

    Args:
        pathname: URL path

    Returns:
        Extension including the leading dot, or None
    """
    match = _EXTENSION_RE.search(pathname)
    return f".{match.group(1).lower()}" if match else None


def get_file_type(extension: Optional[str]) -> str:
    return FILE_TYPES.get(extension or '', 'unknown')


def get_mime_type(extension: Optional[str]) -> str:
    return MIME_TYPES.get(extension or '', DEFAULT_MIME_TYPE)


def is_cdn_host(hostname: Optional[str]) -> bool:
    """Check if a hostname belongs to a known CDN or font provider."""
    if not hostname:
        return False
    hostname = hostname.lower()
    return any(marker in hostname for marker in CDN_HOST_MARKERS)


class URLClassifier:
    """Scores URLs as API requests or static files.

    Results are memoized per (method, url). Each capture session owns its own
    classifier instance.
    """

    def __init__(self):
        self._cache: Dict[Tuple[str, str], Classification] = {}
        self._hits = 0
        self._misses = 0

    def classify_url(
        self,
        url: str,
        method: str = 'GET',
        context: Optional[Dict[str, Any]] = None
    ) -> Classification:
        """Classify a URL.

        Args:
            url: URL to classify
            method: HTTP method of the request
            context: Extra request context (currently unused)

        Returns:
            Classification result; never raises
        """
        method = (method or 'GET').upper()
        cache_key = (method, url if isinstance(url, str) else repr(url))

        cached = self._cache.get(cache_key)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1

        try:
            if not isinstance(url, str):
                raise ValueError(f"URL must be a string, got {type(url).__name__}")
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.netloc:
                raise ValueError(f"URL is not absolute: {url}")
            hostname = parsed.hostname
        except ValueError as e:
            logger.debug(f"Cannot classify URL {url!r}: {e}")
            result = Classification(
                type=UrlType.UNKNOWN,
                confidence=0.0,
                reason='Invalid URL format',
            )
            self._cache[cache_key] = result
            return result

        pathname = (parsed.path or '/').lower()
        query = parsed.query

        api_signals = self._api_signals(pathname, query, method)
        static_signals, extension = self._static_signals(pathname, hostname)

        api_score = sum(api_signals.values())
        static_score = sum(static_signals.values())

        if api_score > static_score:
            result = Classification(
                type=UrlType.API_REQUEST,
                confidence=api_score,
                reasons=list(api_signals),
                reason=f"API indicators: {', '.join(api_signals)}",
                api_signals=api_signals,
                static_signals=static_signals,
            )
        elif static_score > api_score:
            result = Classification(
                type=UrlType.STATIC_FILE,
                confidence=static_score,
                reasons=list(static_signals),
                reason=f"Static file indicators: {', '.join(static_signals)}",
                api_signals=api_signals,
                static_signals=static_signals,
                file_type=get_file_type(extension),
                extension=extension or '',
                mime_type=get_mime_type(extension),
            )
        else:
            result = Classification(
                type=UrlType.UNKNOWN,
                confidence=0.0,
                reason='No clear classification pattern',
                api_signals=api_signals,
                static_signals=static_signals,
            )

        self._cache[cache_key] = result
        return result

    def _api_signals(self, pathname: str, query: str, method: str) -> Dict[str, float]:
        signals: Dict[str, float] = {}

        for pattern in API_PATTERNS:
            if pattern in pathname:
                signals[f"API pattern: {pattern}"] = 0.8

        if method in MUTATING_METHODS:
            signals[f"HTTP method: {method}"] = 0.6

        if query:
            signals['Has query parameters'] = 0.3

        if '.json' in pathname or 'format=json' in pathname or 'format=json' in query.lower():
            signals['JSON format indicator'] = 0.7

        if _NUMERIC_ID_RE.search(pathname) or _HEX_ID_RE.search(pathname):
            signals['REST-like ID pattern'] = 0.5

        if '{' in pathname or '[' in pathname or '*' in pathname:
            signals['Dynamic segment pattern'] = 0.4

        return signals

    def _static_signals(
        self,
        pathname: str,
        hostname: Optional[str]
    ) -> Tuple[Dict[str, float], Optional[str]]:
        signals: Dict[str, float] = {}

        extension = get_file_extension(pathname)
        if extension in STATIC_FILE_EXTENSIONS:
            signals[f"Static file extension: {extension}"] = 0.9

        if any(directory in pathname for directory in STATIC_DIRECTORIES):
            signals['Static directory pattern'] = 0.7

        if is_cdn_host(hostname):
            signals['CDN URL pattern'] = 0.8

        # Version segments only count towards a file, never towards /api/v2/users/42
        if extension and _VERSIONED_RE.search(pathname):
            signals['Versioned static file'] = 0.6

        if '.min.' in pathname or '.bundle.' in pathname:
            signals['Minified file pattern'] = 0.5

        return signals, extension

    def clear_cache(self) -> None:
        """Clear memoized classifications."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        logger.info("Classification cache cleared")

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with cache size, hits and misses
        """
        return {
            'cache_size': len(self._cache),
            'hits': self._hits,
            'misses': self._misses,
        }

    def __repr__(self) -> str:
        return f"URLClassifier(cached={len(self._cache)})"
