"""
Error taxonomy for the session controller.

- ValidationError: required local input is missing; nothing was sent.
- RemoteError: the identity service rejected or failed the call.
- IncompleteSuccess: the call succeeded but returned too little to start a session.

None of these are fatal; the user retries with corrected input.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for outcomes surfaced to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    pass


class RemoteError(AuthError):
    pass


class IncompleteSuccess(AuthError):
    pass


class IdentityServiceError(Exception):
    """Raised by identity service implementations. The message is shown to the user as-is."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
