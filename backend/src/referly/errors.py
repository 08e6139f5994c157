"""Error taxonomy shared by services and the HTTP layer.

Every error carries a stable ``code`` and the HTTP status it maps to. The
message is meant for clients; internal details stay in the logs.
"""


class ReferlyError(Exception):
    """Base class for service errors."""

    code = "error"
    status_code = 500

    def __init__(self, message: str | None = None):
        self.message = message or "Internal server error"
        super().__init__(self.message)


class ConflictError(ReferlyError):
    """A unique field (email, referral code) is already taken."""

    code = "conflict"
    status_code = 400


class NotFoundError(ReferlyError):
    """An identifier or lookup key does not resolve."""

    code = "not_found"
    status_code = 404


class InvalidCredentialsError(ReferlyError):
    """Email/password pair did not authenticate."""

    code = "invalid_credentials"
    status_code = 400

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message or "Invalid credentials")
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ReferlyError):
    """A required field is missing or malformed."""

    code = "validation_error"
    status_code = 400


class DependencyFailure(ReferlyError):
    """The store or the mail transport is unavailable."""

    code = "dependency_failure"
    status_code = 500
