"""
Errors raised by the data-access layer.

Each maps to one HTTP status; the handlers in app.main render them as
``{"detail": message}``.
"""


class ServiceError(Exception):
    """Base class for expected, user-visible failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(ServiceError):
    """Missing or invalid bearer token."""

    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ValidationError(ServiceError):
    """Malformed input or references to ids that do not exist."""

    status_code = 400


class ConflictError(ServiceError):
    status_code = 409
