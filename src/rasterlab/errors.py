"""
Exception types raised by the rasterlab engine.
"""


class RasterlabError(Exception):
    """Base class for all rasterlab errors."""


class PreconditionError(RasterlabError, ValueError):
    """
    Raised when an operation is called with input it cannot process.

    Raised before any computation starts, so no partial buffer is ever
    returned. Subclasses ValueError so callers catching ValueError still work.
    """
