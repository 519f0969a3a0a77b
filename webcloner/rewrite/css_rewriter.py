"""Rewriting of captured stylesheets to local asset paths.

Every ``url()`` token and ``@import`` string in a saved stylesheet is
rewritten relative to that stylesheet's own directory. Relative tokens
are resolved against the stylesheet's remote URL first and the page URL
second; absolute tokens are only touched when the URL was captured.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from ..models.capture import AssetRecord, ResourceRole
from ..utils.files import read_text, write_text_atomic
from ..utils.url_normalizer import (
    is_data_url,
    is_valid_http_url,
    relative_path,
)
from .html_rewriter import CSS_URL_RE, lookup_record
from .repair import contains_corruption, repair_corrupted_tokens

logger = logging.getLogger(__name__)


# String form only; ``@import url(...)`` is covered by the url() pass
CSS_IMPORT_RE = re.compile(r'(?P<prefix>@import\s+)(?P<q>["\'])(?P<ref>[^"\']*)(?P=q)', re.IGNORECASE)


def is_stylesheet(record: AssetRecord) -> bool:
    """Check if a mapped asset is a stylesheet."""
    return record.role == ResourceRole.STYLESHEET or record.relative_path.lower().endswith('.css')


def rewrite_css_text(
    css: str,
    css_url: str,
    css_dir: Path,
    mapping: Mapping[str, AssetRecord],
    page_url: str,
) -> Tuple[str, int]:
    """Rewrite the ``url()`` tokens and ``@import`` strings of one stylesheet.

    Args:
        css: Stylesheet text
        css_url: Remote URL the stylesheet was captured from
        css_dir: Local directory of the stylesheet
        mapping: Remote URL to asset record mapping
        page_url: URL of the captured page

    Returns:
        Tuple of (rewritten CSS, number of rewritten tokens)
    """
    css, repaired = repair_corrupted_tokens(css, font_aware=True, source=css_url)
    count = 0

    def resolve_local(reference: str) -> Optional[str]:
        nonlocal count
        reference = reference.strip()
        if not reference or is_data_url(reference) or reference.startswith('#'):
            return None
        if contains_corruption(reference):
            return None

        if is_valid_http_url(reference):
            record = mapping.get(reference) or mapping.get(reference.split('#', 1)[0])
        else:
            record = lookup_record(mapping, reference, css_url, page_url)

        if record is None:
            return None
        count += 1
        return relative_path(record.local_path, css_dir)

    def rewrite_token(match: 're.Match[str]') -> str:
        local = resolve_local(match.group('ref'))
        if local is None:
            return match.group(0)
        quote = match.group('q')
        return f"url({quote}{local}{quote})"

    def rewrite_import(match: 're.Match[str]') -> str:
        local = resolve_local(match.group('ref'))
        if local is None:
            return match.group(0)
        quote = match.group('q')
        return f"{match.group('prefix')}{quote}{local}{quote}"

    rewritten = CSS_URL_RE.sub(rewrite_token, css)
    rewritten = CSS_IMPORT_RE.sub(rewrite_import, rewritten)
    return rewritten, count + repaired


async def rewrite_stylesheets(
    mapping: Mapping[str, AssetRecord],
    page_url: str,
) -> Dict[str, int]:
    """Rewrite every captured stylesheet in place.

    A stylesheet that cannot be read, decoded or written is logged and left
    as it is.

    Args:
        mapping: Remote URL to asset record mapping
        page_url: URL of the captured page

    Returns:
        Statistics about processed stylesheets
    """
    stats = {'stylesheets': 0, 'rewritten': 0, 'tokens': 0, 'failed': 0}
    seen_paths = set()

    for url, record in mapping.items():
        if not is_stylesheet(record) or record.local_path in seen_paths:
            continue
        seen_paths.add(record.local_path)
        stats['stylesheets'] += 1

        try:
            css = await read_text(record.local_path)
            rewritten, tokens = rewrite_css_text(
                css, url, record.local_path.parent, mapping, page_url
            )
            if rewritten != css:
                await write_text_atomic(record.local_path, rewritten)
                stats['rewritten'] += 1
            stats['tokens'] += tokens
        except OSError as e:
            stats['failed'] += 1
            logger.warning(f"Failed to rewrite stylesheet {record.local_path}: {e}")

    logger.info(
        f"CSS rewrite: {stats['rewritten']}/{stats['stylesheets']} stylesheets changed, "
        f"{stats['tokens']} tokens"
    )
    return stats
