# pathcore/errors.py
"""
Exceptions raised by the path model, sampling front-ends and document layer.
Everything is synchronous and local; callers decide whether to retry.
"""


class PathCoreError(Exception):
    """Base class for all pathcore errors."""


class ValidationError(PathCoreError, ValueError):
    """Input rejected before any mutation took place."""


class InvariantViolation(PathCoreError):
    """Loaded segments could not be linked into a continuous path."""


class FormatError(PathCoreError):
    """Unknown format name or unreadable path file."""
