"""Static reference extraction from raw HTML.

This module scans an HTML document with a set of independent regular
expressions and splits every discovered reference into same-origin static
files and skipped references (data URIs, cross-origin and CDN hosts).
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Pattern
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from ..utils.url_normalizer import (
    URLNormalizationError,
    get_extension,
    get_hostname,
    is_data_url,
    resolve_reference,
)

logger = logging.getLogger(__name__)


SKIP_REASON_DATA_URL = "base64 data URL"
SKIP_REASON_EXTERNAL = "external/cdn"

# Hostname substrings that are never cloned, even when they look same-origin
EXCLUDED_HOST_MARKERS = (
    'cdn.', 'cdnjs.', 'unpkg.', 'jsdelivr.', 'googleapis.', 'gstatic.',
    'cloudflare.', 'bootstrapcdn.', 'fontawesome.', 'jquery.',
    'ajax.googleapis.', 'fonts.googleapis.', 'fonts.gstatic.',
    'mail.ru', 'yandex.', 'rambler.', 'ya.ru', 'google.', 'facebook.',
    'twitter.', 'instagram.', 'linkedin.', 'github.', 'stackoverflow.',
    'amazonaws.', 'azure.', 'firebase.', 'heroku.', 'netlify.',
    'vercel.', 'surge.', 'github.io', 'gitlab.io', 'bitbucket.io',
)

CATCH_ALL_EXTENSIONS = frozenset({
    '.css', '.js', '.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico',
    '.woff', '.woff2', '.ttf', '.eot',
})

_CATCH_ALL_TYPES = {
    '.png': 'image', '.jpg': 'image', '.jpeg': 'image',
    '.gif': 'image', '.svg': 'image', '.webp': 'image',
    '.css': 'css',
    '.js': 'js',
    '.woff': 'font', '.woff2': 'font', '.ttf': 'font', '.eot': 'font',
}


@dataclass(frozen=True)
class ExtractionRule:
    """One independent scan over the document."""
    name: str
    pattern: Pattern[str]
    ref_type: Optional[str]
    catch_all: bool = False


EXTRACTION_RULES = [
    ExtractionRule(
        'stylesheet',
        re.compile(r'<link[^>]+rel=["\']stylesheet["\'][^>]+href=["\']([^"\']+)["\'][^>]*>', re.IGNORECASE),
        'css',
    ),
    ExtractionRule(
        'script',
        re.compile(r'<script[^>]+src=["\']([^"\']+)["\'][^>]*>', re.IGNORECASE),
        'js',
    ),
    ExtractionRule(
        'image',
        re.compile(r'<img[^>]+src=["\']([^"\']+)["\'][^>]*>', re.IGNORECASE),
        'image',
    ),
    ExtractionRule(
        'background-image',
        re.compile(r'background-image\s*:\s*url\(["\']?([^"\')]+)["\']?\)', re.IGNORECASE),
        'image',
    ),
    ExtractionRule(
        'background',
        re.compile(r'background\s*:\s*[^;]*url\(["\']?([^"\')]+)["\']?\)[^;]*', re.IGNORECASE),
        'image',
    ),
    ExtractionRule(
        'url',
        re.compile(r'url\(["\']?([^"\')]+)["\']?\)', re.IGNORECASE),
        None,
        catch_all=True,
    ),
    ExtractionRule(
        'favicon',
        re.compile(r'<link[^>]+rel=["\']icon["\'][^>]+href=["\']([^"\']+)["\'][^>]*>', re.IGNORECASE),
        'favicon',
    ),
]


class StaticReference(BaseModel):
    """Accepted same-origin static reference."""
    url: str = Field(description="Absolute URL")
    type: str = Field(description="Reference type (css, js, image, font, favicon, resource)")


class SkippedReference(BaseModel):
    """Rejected reference with the reason it was rejected."""
    url: str = Field(description="Resolved URL, or the raw reference if unresolvable")
    type: str = Field(description="Reference type")
    reason: str = Field(description="Rejection reason")


class StaticAnalysis(BaseModel):
    """Result of a static extraction pass."""
    static_files: List[StaticReference] = Field(default_factory=list)
    skipped_files: List[SkippedReference] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {
            'staticFiles': [ref.model_dump() for ref in self.static_files],
            'skippedFiles': [ref.model_dump() for ref in self.skipped_files],
        }


def _resolve(reference: str, base_url: str) -> str:
    try:
        return resolve_reference(reference, base_url)
    except URLNormalizationError:
        return reference


def _is_excluded_host(hostname: str) -> bool:
    return any(marker in hostname for marker in EXCLUDED_HOST_MARKERS)


def _catch_all_type(url: str) -> str:
    return _CATCH_ALL_TYPES.get(get_extension(urlparse(url).path), 'resource')


def is_in_scope(url: str, base_hostname: Optional[str], require_extension: bool = False) -> bool:
    """Check whether a resolved URL is a same-origin, non-CDN static file.

    Args:
        url: Absolute URL
        base_hostname: Hostname of the page being analysed
        require_extension: Also require an allowlisted extension

    Returns:
        True if the reference should be cloned
    """
    hostname = get_hostname(url)
    if not hostname or not base_hostname:
        return False
    if _is_excluded_host(hostname):
        return False
    if hostname != base_hostname:
        return False
    if require_extension:
        return get_extension(urlparse(url).path) in CATCH_ALL_EXTENSIONS
    return True


def extract_static_references(html: str, base_url: str) -> StaticAnalysis:
    """Enumerate static references in an HTML document.

    Each rule scans the whole document independently, so a URL matched by
    several rules is reported several times.

    Args:
        html: Raw HTML text
        base_url: URL the HTML was served from

    Returns:
        StaticAnalysis with accepted and skipped references in document order
    """
    analysis = StaticAnalysis()
    base_hostname = get_hostname(base_url)
    if base_hostname:
        base_hostname = base_hostname.lower()

    for rule in EXTRACTION_RULES:
        for match in rule.pattern.finditer(html or ''):
            raw = match.group(1)
            url = _resolve(raw, base_url)
            fallback_type = rule.ref_type or 'resource'

            if is_data_url(url):
                analysis.skipped_files.append(
                    SkippedReference(url=url, type=fallback_type, reason=SKIP_REASON_DATA_URL)
                )
            elif is_in_scope(url, base_hostname, require_extension=rule.catch_all):
                ref_type = _catch_all_type(url) if rule.catch_all else rule.ref_type
                analysis.static_files.append(StaticReference(url=url, type=ref_type))
            else:
                analysis.skipped_files.append(
                    SkippedReference(url=url, type=fallback_type, reason=SKIP_REASON_EXTERNAL)
                )

    if analysis.skipped_files:
        logger.debug(
            f"Skipped {len(analysis.skipped_files)} references: "
            f"{[ref.url for ref in analysis.skipped_files]}"
        )

    return analysis
