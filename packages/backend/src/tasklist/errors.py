"""Error taxonomy shared by the store, the auth layer and the routes.

Learn: handlers never build error responses themselves. They raise one
of these and api/errors.py turns it into a JSON body:

- AuthError        → 403, always {"error": "permission denied"}
- ValidationError  → 400 with the message
- NotFoundError    → 404 with the message
- ConflictError    → 400 with the message (e.g. duplicate email)
- StoreError       → 400 with a generic message; the cause is only logged
"""


class TasklistError(Exception):
    """Base class. Anything raised from a handler maps to an HTTP response."""

    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class AuthError(TasklistError):
    """Authentication failed.

    `reason` says which check failed. It is logged server-side and never
    sent to the client.
    """

    status_code = 403

    MISSING_OR_MALFORMED_HEADER = "missing_or_malformed_header"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MALFORMED = "malformed"
    INVALID_PATH_IDENTITY = "invalid_path_identity"
    UNKNOWN_USER = "unknown_user"
    IDENTITY_MISMATCH = "identity_mismatch"
    INVALID_CREDENTIALS = "invalid_credentials"

    def __init__(self, reason: str):
        super().__init__("permission denied")
        self.reason = reason


class ValidationError(TasklistError):
    """Client sent something we can't use (bad deadline, bad id, bad body)."""


class NotFoundError(TasklistError):
    status_code = 404


class StoreError(TasklistError):
    """Backend fault: connectivity, timeout, unexpected constraint failure."""


class ConflictError(StoreError):
    """A uniqueness constraint rejected the write."""
