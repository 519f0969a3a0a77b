"""Progress reporting package."""

from .progress import ProgressReporter, ProgressCallback

__all__ = [
    'ProgressReporter',
    'ProgressCallback',
]
