"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; main.py turns them into the error envelope. The
``kind`` string is the machine-checkable part, ``status_code`` is only a hint
for the HTTP layer.
"""
from typing import Optional


class JobBoardError(Exception):
    """Base class for every expected failure."""
    kind = "internal"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(JobBoardError):
    """Missing field, malformed identifier or out-of-range page."""
    kind = "validation"
    status_code = 400


class InvalidTransitionError(ValidationError):
    """Raised when an application status change is not allowed"""
    pass


class ConflictError(JobBoardError):
    kind = "conflict"
    status_code = 409


class NotFoundError(JobBoardError):
    kind = "not_found"
    status_code = 404


class NoResultsError(NotFoundError):
    """A valid query that simply matched nothing."""
    kind = "no_results"


class NoPreferenceSignalError(JobBoardError):
    """The user has no bookmarks or applications to derive preferences from."""
    kind = "no_preference_signal"
    status_code = 422


class ForbiddenError(JobBoardError):
    kind = "forbidden"
    status_code = 403


class UnauthenticatedError(JobBoardError):
    kind = "unauthenticated"
    status_code = 401


class StorageError(JobBoardError):
    """Underlying store failure; ``detail`` keeps the driver message."""
    kind = "storage"
    status_code = 500
