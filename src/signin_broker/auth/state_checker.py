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
Passive check of the provider-side authorization state.

Used on app resume or on a timer to find out whether the user revoked the
app's access. This never prompts the user and never touches the backend
session; callers decide whether to start a new sign-in.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from cachetools import TTLCache  # type: ignore[import-untyped]

from ..config import BrokerConfig, config as default_config
from .errors import CredentialStateError, MissingKeyError
from .models import CredentialState

if TYPE_CHECKING:
    from . import CredentialStateProvider
    from .storage import IdentityStore

logger = logging.getLogger(__name__)


class AuthorizationStateChecker:
    """
    Verifies that the provider still considers the stored user authorized.

    When ``credential_state_cache_ttl`` is positive, AUTHORIZED results are
    cached per user id for that many seconds. Other states are never cached.
    """

    def __init__(
        self,
        provider: CredentialStateProvider,
        identity_store: IdentityStore,
        config: Optional[BrokerConfig] = None,
    ) -> None:
        self.provider = provider
        self.identity_store = identity_store
        self.config = config or default_config

        self._authorized_cache: Optional[TTLCache] = None
        if self.config.credential_state_cache_ttl > 0:
            self._authorized_cache = TTLCache(
                maxsize=self.config.credential_state_cache_size,
                ttl=self.config.credential_state_cache_ttl,
            )

    async def check_authorization_state(self) -> None:
        """
        Check the stored authorization key against the provider.

        Raises:
            MissingKeyError: If no authorization key was stored
            CredentialStateError: If the state is anything but AUTHORIZED
        """
        authorization_key = self.identity_store.authorization_key
        if not authorization_key:
            raise MissingKeyError()

        if self._authorized_cache is not None and authorization_key in self._authorized_cache:
            logger.debug("Credential state served from cache")
            return

        try:
            state = await self.provider.get_credential_state(authorization_key)
        except Exception as e:
            logger.warning(f"Credential state query failed: {e}")
            raise CredentialStateError(CredentialState.UNKNOWN.value, e) from e

        if state is not CredentialState.AUTHORIZED:
            logger.info(f"Credential state is {state.value}")
            raise CredentialStateError(state.value)

        if self._authorized_cache is not None:
            self._authorized_cache[authorization_key] = True

    def invalidate(self) -> None:
        """Drop cached AUTHORIZED results."""
        if self._authorized_cache is not None:
            self._authorized_cache.clear()
