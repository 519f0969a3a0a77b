"""Web Cloner - browser-driven page capture and offline rewriting."""

__version__ = "1.0.0"
