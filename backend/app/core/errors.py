"""Domain errors raised by the progression and card rules."""

from typing import Any


class ProgressionError(Exception):
    """Base class. Carries a user-facing message plus structured context."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(ProgressionError):
    """A rule rejected the operation (bad choices, no free slot, ...)."""


class NotFoundError(ProgressionError):
    """Unknown character, card or class."""
