"""Login failure types."""


class AuthenticationError(Exception):
    """A login attempt that cannot complete.

    ``reason`` is short and safe to show to the end user.
    """

    reason = "Authentication failed"

    def __init__(self, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class MalformedPayloadError(AuthenticationError):
    """The authentication payload is missing required fields or has the wrong shape."""

    reason = "Malformed authentication payload"


class PersistenceValidationError(AuthenticationError):
    """The account store rejected the write."""

    reason = "Account could not be saved"


class LoginRequired(Exception):
    """Raised by guarded routes when no account is signed in."""
