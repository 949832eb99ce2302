# gst_engine/domain/errors.py
"""
Exceptions raised by the tax engine.

ValidationError and InvalidStateError abort the enclosing transaction before
anything is persisted. Rate-resolution fallbacks are not exceptions; they are
reported as ``RateResolutionFallback`` warnings on a successful result.
"""

from __future__ import annotations


class TaxEngineError(Exception):
    """Base class for all tax engine errors."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_detail(self) -> dict:
        detail = {"type": type(self).__name__, "message": self.message}
        if self.field:
            detail["field"] = self.field
        return detail


class ValidationError(TaxEngineError):
    """Caller supplied invalid input (quantity, discount, return line...)."""
    pass


class InvalidStateError(TaxEngineError):
    """Operation is not allowed in the document's current status."""
    pass


class NotFoundError(TaxEngineError):
    """A referenced invoice does not exist."""
    pass


class TaxComputationError(TaxEngineError):
    """An internal invariant was violated; indicates a line-level bug."""
    pass
