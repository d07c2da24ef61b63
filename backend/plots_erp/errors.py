# Overview: Domain error taxonomy shared by the lifecycle services and the API layer.

"""
Every error here is terminal for the call that raised it. Services never
retry on these; the caller (route, CLI, sweep) decides what to surface.
"""


class DomainError(Exception):
    """Base class for business-rule failures."""

    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class PermissionDeniedError(DomainError):
    """Raised when the acting user's role lacks the required capability."""

    http_status = 403


class InvalidStateTransitionError(DomainError):
    """Raised when an operation is attempted from a state that forbids it."""

    http_status = 409


class NotFoundError(DomainError):
    """Raised when a referenced plot, lead, booking, etc. does not exist."""

    http_status = 404
