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
Authentication decision engine.

Chooses exactly one backend operation for a normalized credential based on
the live session, then reconciles the locally cached profile fields:

    AUTHENTICATED -> reauthenticate (re-prove identity, same account)
    ANONYMOUS     -> link (upgrade the anonymous account, keep its data)
    ABSENT        -> sign_in (create or resume the permanent identity)

Identity exchange failures are raised. Display name sync with the backend is
best-effort: commit failures are logged and reported to an optional hook.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Optional

from ..config import BrokerConfig, config as default_config
from ..redaction import CredentialSanitizer
from .errors import BackendError
from .models import BackendCredential, NormalizedCredential, SessionClassification
from .session import SessionStateInspector

if TYPE_CHECKING:
    from . import BackendSessionClient, BackendUser, UserRepository
    from .storage import IdentityStore

logger = logging.getLogger(__name__)

ProfileSyncErrorHook = Callable[[Exception], None]


class AuthenticationOrchestrator:
    """
    Performs the backend session operation for a sign-in and syncs profile data.

    Attributes:
        client: Backend session client
        identity_store: Local store for email and display name
        user_repository: Optional application-level user record store
        on_profile_sync_error: Called with the exception when a profile commit fails
    """

    def __init__(
        self,
        client: BackendSessionClient,
        identity_store: IdentityStore,
        user_repository: Optional[UserRepository] = None,
        on_profile_sync_error: Optional[ProfileSyncErrorHook] = None,
        config: Optional[BrokerConfig] = None,
    ) -> None:
        self.client = client
        self.identity_store = identity_store
        self.user_repository = user_repository
        self.on_profile_sync_error = on_profile_sync_error
        self.config = config or default_config
        self.session_inspector = SessionStateInspector(client)

    def _select_operation(
        self, session: SessionClassification
    ) -> tuple[str, Callable[[BackendCredential], Awaitable[Optional[BackendUser]]]]:
        if session is SessionClassification.AUTHENTICATED:
            return "reauthenticate", self.client.reauthenticate
        if session is SessionClassification.ANONYMOUS:
            return "link", self.client.link
        return "sign_in", self.client.sign_in

    async def authenticate(
        self,
        credential: NormalizedCredential,
        session: SessionClassification,
        raw_nonce: str,
    ) -> bool:
        """
        Run the one backend operation matching the session classification.

        Args:
            credential: Normalized provider credential
            session: Classification read immediately before this call
            raw_nonce: Raw nonce released by the sign-in attempt

        Returns:
            True when the backend returned a user

        Raises:
            BackendError: If the backend raised or returned no user
        """
        backend_credential = BackendCredential(
            provider_id=self.config.provider_id,
            id_token=credential.identity_token,
            raw_nonce=raw_nonce,
        )
        operation_name, operation = self._select_operation(session)
        logger.info(f"Session is {session.value}, running backend {operation_name}")

        try:
            user = await operation(backend_credential)
        except Exception as e:
            logger.warning(
                f"Backend {operation_name} failed: {CredentialSanitizer.sanitize_error(e)}"
            )
            raise BackendError(e) from e

        return self._handle_result(operation_name, user)

    def _handle_result(self, operation_name: str, user: Optional[BackendUser]) -> bool:
        if user is not None:
            logger.info(f"Backend {operation_name} succeeded")
            return True
        logger.warning(f"Backend {operation_name} returned no user")
        raise BackendError()

    async def reconcile_profile(self, credential: NormalizedCredential) -> None:
        """
        Merge profile data from the credential into local storage and the backend.

        The provider only sends email and name on first authorization, so absent
        values never overwrite what is already stored.

        Raises:
            Exception: Whatever the user repository raises while saving the record
        """
        if credential.email:
            self.identity_store.email = credential.email

        display_name = credential.display_name
        if not display_name:
            logger.debug("No display name in credential, skipping profile update")
            return

        change_request = self.client.create_profile_change_request()
        if change_request is None:
            logger.debug("No profile-edit capability on backend session, skipping profile update")
            return

        self.identity_store.display_name = display_name

        try:
            await change_request.commit(display_name)
        except Exception as e:
            logger.warning(
                f"Profile display name commit failed (sign-in unaffected): "
                f"{CredentialSanitizer.sanitize_error(e)}"
            )
            if self.on_profile_sync_error is not None:
                try:
                    self.on_profile_sync_error(e)
                except Exception as hook_error:
                    logger.warning(
                        f"Profile sync error hook failed: "
                        f"{CredentialSanitizer.sanitize_error(hook_error)}"
                    )

        if self.user_repository is not None and credential.email:
            await self.user_repository.save_user(name=display_name, email=credential.email)

    async def sign_in(
        self,
        credential: NormalizedCredential,
        raw_nonce: str,
        session: Optional[SessionClassification] = None,
    ) -> bool:
        """Authenticate, then reconcile the profile on success."""
        if session is None:
            session = self.session_inspector.classify()
        result = await self.authenticate(credential, session, raw_nonce)
        await self.reconcile_profile(credential)
        return result
