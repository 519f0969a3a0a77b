"""Exceptions raised across the clone pipeline boundary."""

from typing import Optional


class CloneError(Exception):
    """Base class for pipeline-level failures."""
    pass


class NavigationError(CloneError):
    """Raised when the target page cannot be loaded.

    Navigation failures are fatal to the session and are never retried by
    the pipeline itself.
    """

    def __init__(self, url: str, message: str, timed_out: bool = False, cause: Optional[BaseException] = None):
        super().__init__(f"Navigation to {url} failed: {message}")
        self.url = url
        self.timed_out = timed_out
        self.cause = cause


class ConfigurationError(CloneError):
    """Raised when configuration cannot be loaded or validated."""
    pass
