"""Rewriting of the captured HTML document to local asset paths."""

import logging
import re
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Pattern, Tuple, Union

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from ..models.capture import AssetRecord
from ..utils.url_normalizer import (
    URLNormalizationError,
    is_data_url,
    relative_path,
    resolve_reference,
)
from .repair import repair_corrupted_tokens

logger = logging.getLogger(__name__)


# A remote URL only matches when it is not immediately followed by more path
_URL_BOUNDARY = r'(?![A-Za-z0-9\-._~%/+])'

REFERENCE_ATTRIBUTES = ('src', 'href', 'poster', 'data-src')

# Void elements and boolean attributes are written back the way HTML spells them
_HTML_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
    empty_attributes_are_booleans=True,
)

CSS_URL_RE = re.compile(r'url\(\s*(?P<q>["\']?)(?P<ref>.*?)(?P=q)\s*\)', re.IGNORECASE)


def is_local_reference(reference: str) -> bool:
    """Check if a reference is root-relative or dot-relative (not protocol-relative)."""
    return (
        (reference.startswith('/') and not reference.startswith('//'))
        or reference.startswith('./')
        or reference.startswith('../')
    )


def lookup_record(
    mapping: Mapping[str, AssetRecord],
    reference: str,
    *base_urls: str
) -> Optional[AssetRecord]:
    """Resolve a reference against each base URL in turn and return the first mapped record."""
    for base_url in base_urls:
        if not base_url:
            continue
        try:
            absolute = resolve_reference(reference, base_url)
        except URLNormalizationError:
            continue
        record = mapping.get(absolute)
        if record is not None:
            return record
    return None


def build_replacements(
    mapping: Mapping[str, AssetRecord],
    document_dir: Path
) -> Dict[str, str]:
    """Map every remote URL (and its HTML-escaped form) to a path relative to ``document_dir``."""
    replacements: Dict[str, str] = {}
    for url, record in mapping.items():
        local = relative_path(record.local_path, document_dir)
        replacements[url] = local
        escaped = url.replace('&', '&amp;')
        if escaped != url:
            replacements.setdefault(escaped, local)
    return replacements


def compile_url_pattern(urls) -> Optional[Pattern[str]]:
    """Compile a single alternation over the given URLs, longest first."""
    alternatives = sorted({u for u in urls if u}, key=len, reverse=True)
    if not alternatives:
        return None
    return re.compile('(?:' + '|'.join(re.escape(u) for u in alternatives) + ')' + _URL_BOUNDARY)


def substitute_remote_urls(text: str, replacements: Mapping[str, str]) -> Tuple[str, int]:
    """Replace literal remote URLs in one left-to-right pass.

    Replacement text is never re-scanned, so one substitution cannot
    corrupt another regardless of mapping order.

    Returns:
        Tuple of (rewritten text, number of substitutions)
    """
    pattern = compile_url_pattern(replacements.keys())
    if pattern is None:
        return text, 0
    return pattern.subn(lambda m: replacements[m.group(0)], text)


def rewrite_srcset(srcset: str, rewrite: Callable[[str], Optional[str]]) -> Optional[str]:
    """Rewrite the URL of each ``srcset`` candidate, keeping its descriptor.

    Returns:
        New attribute value, or None when no candidate changed
    """
    candidates = []
    changed = False
    for item in srcset.split(','):
        chunk = item.strip()
        if not chunk:
            continue
        reference, _, descriptor = chunk.partition(' ')
        local = rewrite(reference)
        if local is None:
            candidates.append(chunk)
        else:
            candidates.append(f"{local} {descriptor.strip()}".strip())
            changed = True
    return ', '.join(candidates) if changed else None


def rewrite_relative_references(
    html: str,
    mapping: Mapping[str, AssetRecord],
    html_dir: Path,
    page_url: str,
) -> Tuple[str, int]:
    """Rewrite root- and dot-relative references found on tags.

    Reference attributes, ``srcset`` candidates, ``style`` attributes and
    ``<style>`` blocks are visited on the parsed document, so script and
    body text that merely looks like markup is never touched. The document
    is re-serialized only when at least one reference changed.

    Returns:
        Tuple of (HTML text, number of rewritten references)
    """
    count = 0

    def rewrite_reference(reference: str) -> Optional[str]:
        nonlocal count
        reference = reference.strip()
        if not reference or is_data_url(reference) or not is_local_reference(reference):
            return None
        record = lookup_record(mapping, reference, page_url)
        if record is None:
            return None
        count += 1
        return relative_path(record.local_path, html_dir)

    def rewrite_css_url(match: 're.Match[str]') -> str:
        local = rewrite_reference(match.group('ref'))
        if local is None:
            return match.group(0)
        quote = match.group('q')
        return f"url({quote}{local}{quote})"

    soup = BeautifulSoup(html, 'html.parser')

    for tag in soup.find_all(True):
        for attr in REFERENCE_ATTRIBUTES:
            value = tag.get(attr)
            if not isinstance(value, str):
                continue
            local = rewrite_reference(value)
            if local is not None:
                tag[attr] = local

        srcset = tag.get('srcset')
        if isinstance(srcset, str):
            rewritten = rewrite_srcset(srcset, rewrite_reference)
            if rewritten is not None:
                tag['srcset'] = rewritten

        style = tag.get('style')
        if isinstance(style, str):
            tag['style'] = CSS_URL_RE.sub(rewrite_css_url, style)

        if tag.name == 'style' and tag.string:
            css = str(tag.string)
            rewritten = CSS_URL_RE.sub(rewrite_css_url, css)
            if rewritten != css:
                tag.string = rewritten

    if count == 0:
        return html, 0
    return soup.decode(formatter=_HTML_FORMATTER), count


def rewrite_html(
    html: str,
    mapping: Mapping[str, AssetRecord],
    html_dir: Union[str, Path],
    page_url: str,
) -> str:
    """Rewrite a captured HTML document to reference local files.

    Steps: repair corrupted tokens, rewrite relative references that resolve
    to mapped files, then substitute every literal remote URL with the path
    of its local file relative to ``html_dir``.

    Args:
        html: Final HTML snapshot
        mapping: Remote URL to asset record mapping
        html_dir: Directory the HTML file will be written to
        page_url: URL the snapshot was taken from

    Returns:
        Rewritten HTML text
    """
    html_dir = Path(html_dir)

    html, repaired = repair_corrupted_tokens(html, font_aware=False, source="HTML")
    html, relative_count = rewrite_relative_references(html, mapping, html_dir, page_url)
    html, absolute_count = substitute_remote_urls(html, build_replacements(mapping, html_dir))

    logger.info(
        f"HTML rewrite: {absolute_count} remote URLs, {relative_count} relative references, "
        f"{repaired} repaired tokens"
    )
    return html
