"""CLI module for Web Cloner.

This package provides the command-line interface for running clones and
the standalone extractor and classifier from the command line.
"""

from .main import (
    # Exit codes
    ExitCode,

    # Typer application
    app,
    cli_main,
)

from .progress import ProgressPrinter

__all__ = [
    # Exit codes
    'ExitCode',

    # Typer application
    'app',
    'cli_main',

    # Output
    'ProgressPrinter',
]
