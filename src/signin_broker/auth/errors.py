"""
Exception taxonomy for the sign-in broker.

Every failure the core can report is one of these classes. Callers decide
what to show the user and whether to retry; nothing here retries.
"""

from __future__ import annotations

from typing import Optional


class SignInBrokerError(Exception):
    """Base exception for all sign-in broker failures."""

    pass


# ---------------------------------------------------------------------------
# Authentication (sign-in path)
# ---------------------------------------------------------------------------


class AuthenticationError(SignInBrokerError):
    """Base exception for failures on the sign-in path."""

    pass


class ExternalAuthorizationError(AuthenticationError):
    """The external authorization flow failed or was cancelled by the user."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(f"External authorization failed: {error}")
        self.error = error


class UnexpectedCredentialTypeError(AuthenticationError):
    """The flow succeeded but produced a credential of the wrong type."""

    def __init__(self, described_type: str) -> None:
        super().__init__(f"Did not receive an AppleIDCredential, but {described_type}")
        self.described_type = described_type


class MissingTokenError(AuthenticationError):
    """The credential carries no usable identity token."""

    def __init__(self, message: str = "Missing Identity Token") -> None:
        super().__init__(message)


class NonceError(AuthenticationError):
    """Base exception for nonce binding failures."""

    pass


class NonceReusedError(NonceError):
    """The sign-in attempt's nonce was already exchanged."""

    pass


class NonceMismatchError(NonceError):
    """The identity token is not bound to the attempt's nonce."""

    pass


class BackendError(AuthenticationError):
    """The backend session operation returned no user."""

    def __init__(self, error: Optional[BaseException] = None) -> None:
        message = f"Backend authentication failed: {error}" if error else "Backend returned no user"
        super().__init__(message)
        self.error = error


class NotAuthenticatedError(AuthenticationError):
    """Re-authentication was requested without an authenticated session."""

    pass


# ---------------------------------------------------------------------------
# Authorization state (passive checks)
# ---------------------------------------------------------------------------


class AuthorizationError(SignInBrokerError):
    """Base exception for passive authorization state checks."""

    pass


class MissingKeyError(AuthorizationError):
    """No durable authorization key has been stored yet."""

    def __init__(self, message: str = "Missing authorization key in storage") -> None:
        super().__init__(message)


class CredentialStateError(AuthorizationError):
    """The provider no longer considers the user authorized."""

    def __init__(self, description: str, error: Optional[BaseException] = None) -> None:
        message = f"Credential state is {description}"
        if error is not None:
            message = f"{message}: {error}"
        super().__init__(message)
        self.description = description
        self.error = error
