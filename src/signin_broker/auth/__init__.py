"""
Authentication decision engine for brokering provider sign-in into a backend session.

Architecture:
- Collaborator Protocols: key-value store, authorization flow, backend
  session client, credential-state provider and user repository
- SignInAttempt: owns the one-time nonce for a single sign-in
- classify_authorization_result: provider outcome -> NormalizedCredential
- SessionStateInspector: absent / anonymous / authenticated
- AuthenticationOrchestrator: sign-in, link or re-authenticate, then profile sync
- AuthorizationStateChecker: passive provider-side credential check
"""

from __future__ import annotations

from typing import Optional, Protocol

from .attempt import SignInAttempt
from .classifier import CredentialClassifier, classify_authorization_result
from .errors import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    CredentialStateError,
    ExternalAuthorizationError,
    MissingKeyError,
    MissingTokenError,
    NonceError,
    NonceMismatchError,
    NonceReusedError,
    NotAuthenticatedError,
    SignInBrokerError,
    UnexpectedCredentialTypeError,
)
from .models import (
    AppleIDCredential,
    Authorization,
    AuthorizationRequest,
    AuthorizationScope,
    BackendCredential,
    CredentialState,
    NormalizedCredential,
    PasswordCredential,
    PersonName,
    SessionClassification,
    StoredIdentity,
)
from .nonce import Nonce, generate_nonce
from .orchestrator import AuthenticationOrchestrator
from .session import SessionStateInspector
from .state_checker import AuthorizationStateChecker
from .storage import IdentityStore, InMemoryKeyValueStore

__all__ = [
    "AppleIDCredential",
    "AuthenticationError",
    "AuthenticationOrchestrator",
    "Authorization",
    "AuthorizationError",
    "AuthorizationFlow",
    "AuthorizationRequest",
    "AuthorizationScope",
    "AuthorizationStateChecker",
    "BackendCredential",
    "BackendError",
    "BackendSessionClient",
    "BackendUser",
    "CredentialClassifier",
    "CredentialState",
    "CredentialStateError",
    "CredentialStateProvider",
    "ExternalAuthorizationError",
    "IdentityStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "MissingKeyError",
    "MissingTokenError",
    "Nonce",
    "NonceError",
    "NonceMismatchError",
    "NonceReusedError",
    "NormalizedCredential",
    "NotAuthenticatedError",
    "PasswordCredential",
    "PersonName",
    "ProfileChangeRequest",
    "SessionClassification",
    "SessionStateInspector",
    "SignInAttempt",
    "SignInBrokerError",
    "StoredIdentity",
    "UnexpectedCredentialTypeError",
    "UserRepository",
    "classify_authorization_result",
    "generate_nonce",
]


class KeyValueStore(Protocol):
    """Synchronous string store for the persisted identity fields."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class AuthorizationFlow(Protocol):
    """External authorization UI flow.

    Methods:
        perform: Present the provider's sign-in UI for the request and return
            the Authorization on success. Raises on failure or user cancellation.
    """

    async def perform(self, request: AuthorizationRequest) -> Authorization: ...


class BackendUser(Protocol):
    """User object held by the backend session client."""

    uid: str
    is_anonymous: bool


class ProfileChangeRequest(Protocol):
    """Profile-edit capability of the backend's current user."""

    async def commit(self, display_name: str) -> None:
        """Submit a display name change. Raises on failure."""
        ...


class BackendSessionClient(Protocol):
    """Backend identity service client.

    Each session operation returns the resulting user, or None when the
    backend produced no user. Transport failures are raised.
    """

    @property
    def current_user(self) -> Optional[BackendUser]: ...

    async def sign_in(self, credential: BackendCredential) -> Optional[BackendUser]: ...

    async def link(self, credential: BackendCredential) -> Optional[BackendUser]: ...

    async def reauthenticate(self, credential: BackendCredential) -> Optional[BackendUser]: ...

    def create_profile_change_request(self) -> Optional[ProfileChangeRequest]:
        """Return the profile-edit capability, or None if there is no current user."""
        ...


class CredentialStateProvider(Protocol):
    """Platform query for the state of a previously granted authorization."""

    async def get_credential_state(self, user_id: str) -> CredentialState: ...


class UserRepository(Protocol):
    """Optional application-level user record store."""

    async def save_user(self, name: str, email: str) -> None: ...
