"""
Error taxonomy and helpers for consistent error message extraction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracely.models import site


class TracelyError(Exception):
    """Base class for all errors raised by the engine."""


class ValidationError(TracelyError):
    """A request is missing a required field (domain, tracker domain).

    Raised by the HTTP layer before any engine logic runs.
    """


class NotFoundError(TracelyError):
    """No persisted record exists for the requested key.

    A normal "no data yet" outcome, not a failure of the engine.
    """


class StorageError(TracelyError):
    """The persistence layer is unavailable or returned corrupt data.

    When raised after a recompute has already run, ``aggregate``
    carries the in-memory result so callers can decide between
    retrying and degrading to a cached view.
    """

    def __init__(self, message: str, *, aggregate: site.SiteAggregate | None = None) -> None:
        super().__init__(message)
        self.aggregate = aggregate


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"
