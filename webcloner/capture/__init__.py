"""Browser Capture Engine for Web Cloner.

This module provides page cloning using Playwright: cookie injection,
response body capture, WebSocket frame logging, and the pipeline that turns
a captured session into a self-contained local copy.

Main Components:
- Browser Factory: Browser context creation and management
- Network Observer: Per-response body reads feeding a single consumer
- Page Session: Navigation, settle and snapshot of one page
- Clone Pipeline: Persistence, rewriting and log flushing
- Configuration: YAML settings with environment overrides

Usage:
    from webcloner.capture import run_clone
    from webcloner.models import CloneRequest

    result = await run_clone(CloneRequest(url="https://example.com", output_dir="out"))
"""

__all__ = [
    # Errors
    "CloneError",
    "NavigationError",
    "ConfigurationError",

    # Main components
    "ClonePipeline",
    "CloneEngineConfig",
    "BrowserFactory",
    "BrowserConfig",
    "BrowserEngineType",
    "PageSession",
    "PageSessionConfig",
    "WaitStrategy",
    "NetworkObserver",

    # Configuration
    "CloneConfig",
    "CloneConfigManager",
    "get_config",

    # Convenience functions
    "run_clone",
    "classify_hints",
    "apply_cookies",
    "to_playwright_cookie",
    "create_default_factory",
    "create_pipeline_from_config",
]

from .errors import CloneError, NavigationError, ConfigurationError

from .browser_factory import (
    BrowserFactory,
    BrowserConfig,
    BrowserEngineType,
    create_default_factory,
)

from .cookies import apply_cookies, to_playwright_cookie
from .network_observer import NetworkObserver

from .page_session import (
    PageSession,
    PageSessionConfig,
    WaitStrategy,
)

from .engine import (
    ClonePipeline,
    CloneEngineConfig,
    classify_hints,
    run_clone,
)

from .config import (
    CloneConfig,
    CloneConfigManager,
    get_config,
    create_pipeline_from_config,
)
