#!/usr/bin/env python3
# MIT License
#
# Copyright (c) 2025 Signin Broker Contributors
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""
Application-facing facade over the authentication decision engine.

Typical use from an application shell:

    manager = AuthenticationManager(client, store, credential_state_provider)
    credential = await manager.sign_in(flow)
    ...
    await manager.check_authorization_state()  # on app resume
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

from .auth.attempt import SignInAttempt
from .auth.classifier import classify_authorization_result
from .auth.errors import NotAuthenticatedError
from .auth.models import (
    AuthorizationScope,
    NormalizedCredential,
    SessionClassification,
    StoredIdentity,
)
from .auth.orchestrator import AuthenticationOrchestrator, ProfileSyncErrorHook
from .auth.session import SessionStateInspector
from .auth.state_checker import AuthorizationStateChecker
from .auth.storage import IdentityStore, InMemoryKeyValueStore
from .config import BrokerConfig, config as default_config

if TYPE_CHECKING:
    from .auth import (
        AuthorizationFlow,
        BackendSessionClient,
        CredentialStateProvider,
        KeyValueStore,
        UserRepository,
    )

logger = logging.getLogger(__name__)


class AuthenticationManager:
    """
    Wires the sign-in components together around one backend client and store.

    Attributes:
        identity_store: Typed view over the key-value store
        session_inspector: Live session classification
        orchestrator: Backend operation selection and profile sync
        state_checker: Passive credential-state verification (None without a provider)
    """

    def __init__(
        self,
        client: BackendSessionClient,
        store: Optional[KeyValueStore] = None,
        credential_state_provider: Optional[CredentialStateProvider] = None,
        user_repository: Optional[UserRepository] = None,
        on_profile_sync_error: Optional[ProfileSyncErrorHook] = None,
        config: Optional[BrokerConfig] = None,
    ) -> None:
        self.config = config or default_config
        self.identity_store = IdentityStore(store or InMemoryKeyValueStore(), self.config)
        self.session_inspector = SessionStateInspector(client)
        self.orchestrator = AuthenticationOrchestrator(
            client,
            self.identity_store,
            user_repository=user_repository,
            on_profile_sync_error=on_profile_sync_error,
            config=self.config,
        )
        self.state_checker: Optional[AuthorizationStateChecker] = None
        if credential_state_provider is not None:
            self.state_checker = AuthorizationStateChecker(
                credential_state_provider, self.identity_store, self.config
            )

    # -- session & storage ------------------------------------------------

    def session_classification(self) -> SessionClassification:
        return self.session_inspector.classify()

    @property
    def authorization_key(self) -> Optional[str]:
        """Provider user id stored by the last successful classification"""
        return self.identity_store.authorization_key

    def remove_authorization_key(self) -> None:
        self.identity_store.remove_authorization_key()

    def stored_identity(self) -> StoredIdentity:
        return self.identity_store.snapshot()

    # -- sign-in ------------------------------------------------------------

    def begin_sign_in(
        self,
        scopes: Optional[Iterable[AuthorizationScope | str]] = None,
        state: Optional[str] = None,
    ) -> SignInAttempt:
        """Create a sign-in attempt with a fresh nonce and its outbound request."""
        return SignInAttempt(scopes=scopes, state=state, config=self.config)

    async def handle_authorization_result(
        self, attempt: SignInAttempt, outcome: Any
    ) -> NormalizedCredential:
        """
        Finish a sign-in attempt with the outcome of the authorization flow.

        The authorization key is persisted as soon as the credential is
        classified, so a later backend failure still leaves it available for
        credential-state checks.

        Args:
            attempt: Attempt whose request was passed to the flow
            outcome: Authorization on success, or the exception the flow raised

        Returns:
            The normalized credential used for the sign-in

        Raises:
            AuthenticationError: Any classification, nonce or backend failure
        """
        credential = classify_authorization_result(outcome)
        self.identity_store.authorization_key = credential.external_user_id

        raw_nonce = attempt.consume(credential.identity_token)
        session = self.session_inspector.classify()
        await self.orchestrator.sign_in(credential, raw_nonce, session=session)

        logger.info(f"Sign-in completed from {session.value} session")
        return credential

    async def sign_in(
        self,
        flow: AuthorizationFlow,
        scopes: Optional[Iterable[AuthorizationScope | str]] = None,
    ) -> NormalizedCredential:
        """Run the full sign-in: build the request, perform the flow, authenticate."""
        attempt = self.begin_sign_in(scopes)
        try:
            outcome: Any = await flow.perform(attempt.request)
        except Exception as e:
            outcome = e
        return await self.handle_authorization_result(attempt, outcome)

    async def reauthenticate(
        self,
        flow: AuthorizationFlow,
        scopes: Optional[Iterable[AuthorizationScope | str]] = None,
    ) -> NormalizedCredential:
        """
        Ask the user for their credentials again before a security-sensitive action.

        Raises:
            NotAuthenticatedError: If the current session is not authenticated
        """
        if not self.session_inspector.is_authenticated:
            raise NotAuthenticatedError("Re-authentication requires an authenticated session")
        return await self.sign_in(flow, scopes)

    # -- passive checks -----------------------------------------------------

    async def check_authorization_state(self) -> None:
        """
        Raises:
            RuntimeError: If no credential-state provider was configured
            AuthorizationError: MissingKeyError or CredentialStateError
        """
        if self.state_checker is None:
            raise RuntimeError("No credential state provider configured")
        await self.state_checker.check_authorization_state()
