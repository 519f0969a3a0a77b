"""Reference rewriting package."""

from .repair import (
    contains_corruption,
    repair_corrupted_tokens,
    FALLBACK_ASSET,
    FALLBACK_FONT,
)
from .html_rewriter import rewrite_html, substitute_remote_urls
from .css_rewriter import rewrite_css_text, rewrite_stylesheets

__all__ = [
    'contains_corruption',
    'repair_corrupted_tokens',
    'FALLBACK_ASSET',
    'FALLBACK_FONT',
    'rewrite_html',
    'substitute_remote_urls',
    'rewrite_css_text',
    'rewrite_stylesheets',
]
