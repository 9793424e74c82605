"""
Exceptions raised by the trade analytics engine.
"""

__all__ = ["TradebookError", "ValidationError", "InvalidQueryError"]


class TradebookError(Exception):
    """Base class for all tradebook failures."""


class ValidationError(TradebookError, ValueError):
    """A trade record is malformed and cannot enter the engine."""


class InvalidQueryError(TradebookError, ValueError):
    """A filter status or sort key is not one the engine knows."""
