"""Detection and repair of corrupted URL tokens.

A corrupted token is an object that was stringified instead of its URL,
e.g. ``[object Object]`` from a JavaScript serializer or
``<pkg.Type object at 0x7f...>`` from a Python ``repr``. Such tokens inside
``url(...)`` are replaced with the best URL recoverable from the
surrounding document. Anything that cannot be recovered becomes a clearly
named fallback path, so the output never contains a corrupted token.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


CORRUPTED_TOKEN_RE = re.compile(
    r'\[object [A-Za-z]+\]'
    r'|<[A-Za-z_][\w.]* object at 0x[0-9a-fA-F]+>'
)

URL_TOKEN_RE = re.compile(r'url\(([^)]*)\)', re.IGNORECASE)

FONT_EXTENSIONS = ('.woff2', '.woff', '.ttf', '.otf', '.eot')
FONT_CONTEXT_MARKERS = ('@font-face', 'font-family')

FALLBACK_ASSET = './asset.css'
FALLBACK_FONT = './font.woff'
CONTEXT_RADIUS = 200


@dataclass(frozen=True)
class UrlCandidate:
    """A well-formed ``url(...)`` token found in the document."""
    token: str
    offset: int

    @property
    def is_font(self) -> bool:
        lowered = self.token.lower()
        return any(ext in lowered for ext in FONT_EXTENSIONS)


def contains_corruption(text: str) -> bool:
    """Check if text contains a corrupted URL token."""
    return bool(text) and CORRUPTED_TOKEN_RE.search(text) is not None


def _is_usable(inner: str) -> bool:
    return bool(inner.strip().strip('\'"').strip())


def collect_candidates(text: str) -> List[UrlCandidate]:
    """Collect every non-empty, non-corrupted ``url(...)`` token in a document."""
    return [
        UrlCandidate(token=match.group(0), offset=match.start())
        for match in URL_TOKEN_RE.finditer(text)
        if _is_usable(match.group(1)) and not contains_corruption(match.group(1))
    ]


def is_font_context(text: str, offset: int, radius: int = CONTEXT_RADIUS) -> bool:
    """Check whether a position sits inside an ``@font-face`` or font rule.

    The enclosing rule (between the surrounding braces) is inspected,
    clipped to ``radius`` characters on each side of the position.
    """
    rule_start = text.rfind('}', 0, offset) + 1
    rule_end = text.find('}', offset)
    if rule_end == -1:
        rule_end = len(text)

    window = text[max(rule_start, offset - radius):min(rule_end, offset + radius)].lower()
    return any(marker in window for marker in FONT_CONTEXT_MARKERS)


def _nearest(candidates: List[UrlCandidate], offset: int, radius: int) -> Optional[UrlCandidate]:
    nearby = [c for c in candidates if abs(c.offset - offset) <= radius]
    if not nearby:
        return None
    return min(nearby, key=lambda c: abs(c.offset - offset))


def recover_url_token(
    candidates: List[UrlCandidate],
    offset: int,
    font_context: bool,
    radius: int = CONTEXT_RADIUS,
) -> str:
    """Pick the replacement for a corrupted ``url(...)`` token.

    Font contexts prefer font URLs, nearby first. Otherwise the nearest
    candidate within ``radius`` wins, then the first candidate anywhere,
    then the fallback.

    Args:
        candidates: Well-formed tokens from the original document
        offset: Position of the corrupted token
        font_context: Whether the token sits in a font rule
        radius: Context window in characters

    Returns:
        A complete ``url(...)`` token
    """
    if font_context:
        fonts = [c for c in candidates if c.is_font]
        chosen = _nearest(fonts, offset, radius) or (fonts[0] if fonts else None)
        if chosen:
            return chosen.token

    chosen = _nearest(candidates, offset, radius) or (candidates[0] if candidates else None)
    if chosen:
        return chosen.token

    return f"url({FALLBACK_FONT if font_context else FALLBACK_ASSET})"


def repair_corrupted_tokens(
    text: str,
    font_aware: bool = False,
    radius: int = CONTEXT_RADIUS,
    source: str = "document",
) -> Tuple[str, int]:
    """Remove every corrupted token from an HTML or CSS document.

    Args:
        text: Document text
        font_aware: Prefer font URLs when the token sits in a font rule
        radius: Context window for recovery, in characters
        source: Label used in log messages

    Returns:
        Tuple of (repaired text, number of repairs)
    """
    if not contains_corruption(text):
        return text, 0

    candidates = collect_candidates(text)
    repairs = 0

    def repair_url(match: 're.Match[str]') -> str:
        nonlocal repairs
        inner = match.group(1)
        if not contains_corruption(inner):
            return match.group(0)

        repairs += 1
        cleaned = CORRUPTED_TOKEN_RE.sub('', inner)
        if _is_usable(cleaned):
            replacement = f"url({cleaned})"
        else:
            font_context = font_aware and is_font_context(text, match.start(), radius)
            replacement = recover_url_token(candidates, match.start(), font_context, radius)

        logger.warning(f"Repaired corrupted URL token in {source}: {match.group(0)!r} -> {replacement!r}")
        return replacement

    repaired = URL_TOKEN_RE.sub(repair_url, text)

    def repair_bare(match: 're.Match[str]') -> str:
        nonlocal repairs
        repairs += 1
        font_context = font_aware and is_font_context(repaired, match.start(), radius)
        replacement = FALLBACK_FONT if font_context else FALLBACK_ASSET
        logger.warning(f"Replaced corrupted token in {source}: {match.group(0)!r} -> {replacement!r}")
        return replacement

    repaired = CORRUPTED_TOKEN_RE.sub(repair_bare, repaired)
    return repaired, repairs
