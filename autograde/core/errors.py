# autograde/core/errors.py
"""
Exception hierarchy.

Only upstream failures (provider errors, unreadable images) are raised while
processing a sheet. Detection ambiguity is never an error: it ends up as empty
or approximate fields for a human reviewer.
"""


class AutogradeError(Exception):
    """Base class for all autograde errors."""


class OCRProviderError(AutogradeError):
    """The OCR provider failed (network, quota, bad response)."""


class InvalidImageError(AutogradeError):
    """The uploaded bytes could not be decoded as an image."""


class GradeProcessingError(AutogradeError):
    """Processing a grade sheet failed as a whole."""


class JobNotFoundError(AutogradeError):
    pass


class JobStateError(AutogradeError):
    """The job is not in a state that allows the requested action."""


class UnknownStudentError(AutogradeError):
    pass
