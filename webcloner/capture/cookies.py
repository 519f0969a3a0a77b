"""Conversion of caller-supplied cookies into Playwright cookies."""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from playwright.async_api import BrowserContext

from ..models.capture import CookieInput

logger = logging.getLogger(__name__)


def normalize_domain(domain: Optional[str]) -> Optional[str]:
    """Strip the leading dot browser extensions export for domain cookies."""
    if not domain:
        return None
    return domain[1:] if domain.startswith('.') else domain


def map_same_site(value: Optional[str]) -> str:
    """Map an exported SameSite value onto Playwright's Strict/Lax/None."""
    if not value:
        return 'Lax'
    lowered = str(value).lower()
    if 'strict' in lowered:
        return 'Strict'
    if 'none' in lowered:
        return 'None'
    return 'Lax'


def to_playwright_cookie(cookie: CookieInput, target_url: str) -> Dict[str, Any]:
    """Convert one cookie.

    Args:
        cookie: Caller-supplied cookie
        target_url: URL being cloned; supplies the default domain

    Returns:
        Cookie dict accepted by ``BrowserContext.add_cookies``
    """
    domain = normalize_domain(cookie.domain or urlparse(target_url).hostname)
    payload: Dict[str, Any] = {
        'name': cookie.name,
        'value': cookie.value,
        'domain': domain,
        'path': cookie.path or '/',
        'httpOnly': bool(cookie.http_only),
        'secure': bool(cookie.secure),
        'sameSite': map_same_site(cookie.same_site),
    }
    if cookie.expiration_date:
        payload['expires'] = math.floor(cookie.expiration_date)
    return payload


def to_playwright_cookies(cookies: Iterable[CookieInput], target_url: str) -> List[Dict[str, Any]]:
    return [to_playwright_cookie(cookie, target_url) for cookie in cookies]


async def apply_cookies(
    context: BrowserContext,
    cookies: Iterable[CookieInput],
    target_url: str
) -> int:
    """Add cookies to a browser context before navigation.

    Args:
        context: Browser context of the capture page
        cookies: Caller-supplied cookies
        target_url: URL being cloned

    Returns:
        Number of cookies applied
    """
    payload = to_playwright_cookies(cookies, target_url)
    if not payload:
        return 0

    await context.add_cookies(payload)
    logger.info(f"Applied {len(payload)} cookies for {urlparse(target_url).hostname}")
    return len(payload)
