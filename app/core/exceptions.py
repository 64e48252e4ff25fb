"""
Application errors. Each carries the HTTP status the API answers with;
`app.main` renders them through `error_response`.
"""


class ODZenError(Exception):
    """Base exception for business rule violations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ODZenError):
    """Input refused before any remote call was made."""


class Forbidden(ODZenError):
    status_code = 403


class NotFound(ODZenError):
    status_code = 404


class InvalidTransition(ODZenError):
    """Raised when a write would break the request or attendance lifecycle."""

    status_code = 409


class RemoteServiceError(ODZenError):
    """A Supabase call failed. The cause is logged where it was caught."""

    status_code = 502
