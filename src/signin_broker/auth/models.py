"""
Data models for the authentication module.

Separated from __init__.py to avoid circular imports between
the protocol definitions and the components that use them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class AuthorizationScope(Enum):
    """User data requested from the identity provider"""

    FULL_NAME = "full_name"
    EMAIL = "email"


class SessionClassification(Enum):
    """Classification of the live backend session"""

    ABSENT = "absent"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class CredentialState(Enum):
    """Provider-side state of a previously granted authorization"""

    AUTHORIZED = "authorized"
    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    TRANSFERRED = "transferred"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PersonName:
    """Structured name as delivered by the identity provider.

    Every component is optional; the provider only sends a name the first
    time a user authorizes the app.
    """

    given_name: Optional[str] = None
    family_name: Optional[str] = None
    middle_name: Optional[str] = None
    nickname: Optional[str] = None
    name_prefix: Optional[str] = None
    name_suffix: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Given and family name joined by a single space, skipping empty parts."""
        return " ".join(part for part in (self.given_name, self.family_name) if part)


@dataclass(frozen=True)
class AppleIDCredential:
    """Credential returned by a successful Sign in with Apple flow.

    Attributes:
        user: Stable identifier of the user for this app
        identity_token: JWT bytes proving the user's identity
        authorization_code: Short-lived code for the provider's token endpoint
        email: Email address, only on first authorization
        full_name: Name components, only on first authorization
        state: Opaque state echoed back from the request
        authorized_scopes: Scopes the user actually granted
    """

    user: str
    identity_token: Optional[bytes] = None
    authorization_code: Optional[bytes] = None
    email: Optional[str] = None
    full_name: Optional[PersonName] = None
    state: Optional[str] = None
    authorized_scopes: tuple[AuthorizationScope, ...] = ()


@dataclass(frozen=True)
class PasswordCredential:
    """Keychain password credential; not usable for backend sign-in"""

    user: str
    password: str = field(repr=False, default="")


@dataclass(frozen=True)
class Authorization:
    """Successful outcome of the external authorization flow"""

    credential: Any
    provider: str = "apple.com"


@dataclass
class AuthorizationRequest:
    """Outbound request handed to the external authorization flow.

    Only the nonce digest travels with the request; the raw value stays
    with the sign-in attempt that created it.
    """

    requested_scopes: tuple[AuthorizationScope, ...]
    nonce: str
    state: Optional[str] = None


@dataclass(frozen=True)
class NormalizedCredential:
    """Provider credential reduced to what the backend and profile sync need"""

    external_user_id: str
    identity_token: str = field(repr=False)
    email: Optional[str] = None
    full_name: Optional[PersonName] = None

    @property
    def display_name(self) -> str:
        return self.full_name.display_name if self.full_name else ""


@dataclass(frozen=True)
class BackendCredential:
    """Credential submitted to the backend session client"""

    provider_id: str
    id_token: str = field(repr=False)
    raw_nonce: str = field(repr=False)


@dataclass(frozen=True)
class StoredIdentity:
    """Snapshot of the locally persisted identity fields"""

    authorization_key: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
