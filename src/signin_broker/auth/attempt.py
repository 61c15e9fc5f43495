"""
A single sign-in attempt and the nonce it owns.

Each attempt generates its own nonce when it builds the outbound request and
gives the raw value out exactly once, when the identity token is exchanged
with the backend (see AuthenticationOrchestrator.authenticate). Holding the
nonce on the attempt instead of in a shared slot means concurrent attempts
never see each other's nonce.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable
from typing import Any, Optional

import jwt

from ..config import BrokerConfig, config as default_config
from .errors import NonceMismatchError, NonceReusedError
from .models import AuthorizationRequest, AuthorizationScope
from .nonce import Nonce

logger = logging.getLogger(__name__)


def _resolve_scopes(scopes: Iterable[AuthorizationScope | str]) -> tuple[AuthorizationScope, ...]:
    return tuple(AuthorizationScope(scope) if isinstance(scope, str) else scope for scope in scopes)


class SignInAttempt:
    """Owns the nonce and outbound request for one sign-in.

    Attributes:
        nonce: The attempt's nonce (raw value never leaves except via consume)
        request: Authorization request carrying the scopes and nonce digest
    """

    def __init__(
        self,
        scopes: Optional[Iterable[AuthorizationScope | str]] = None,
        state: Optional[str] = None,
        nonce: Optional[Nonce] = None,
        config: Optional[BrokerConfig] = None,
    ) -> None:
        self.config = config or default_config
        self.nonce = nonce or Nonce.generate(self.config.nonce_length)
        requested = self.config.requested_scopes if scopes is None else scopes
        self.request = AuthorizationRequest(
            requested_scopes=_resolve_scopes(requested),
            nonce=self.nonce.digest,
            state=state,
        )
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self, identity_token: str) -> str:
        """Release the raw nonce for the credential exchange.

        Args:
            identity_token: Decoded identity token from the provider

        Returns:
            The raw nonce value

        Raises:
            NonceReusedError: If the nonce was already consumed
            NonceMismatchError: If the token is not bound to this attempt's nonce
        """
        if self._consumed:
            raise NonceReusedError("Nonce for this sign-in attempt was already used")
        # Marked before verification so a rejected token cannot be retried
        self._consumed = True

        if self.config.verify_nonce_claim:
            self._verify_nonce_claim(identity_token)

        return self.nonce.value

    def _verify_nonce_claim(self, identity_token: str) -> None:
        # Signature is checked by the backend; only the nonce binding is checked here
        try:
            claims: dict[str, Any] = jwt.decode(
                identity_token,
                options={
                    "verify_signature": False,
                    "verify_exp": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Identity token could not be decoded: {e}")
            raise NonceMismatchError("Identity token is not a valid JWT") from e

        token_nonce = claims.get("nonce")
        if not isinstance(token_nonce, str):
            raise NonceMismatchError("Identity token carries no nonce claim")

        expected = self.nonce.digest.encode("utf-8")
        if not hmac.compare_digest(token_nonce.encode("utf-8"), expected):
            logger.warning("Identity token nonce does not match the sign-in attempt")
            raise NonceMismatchError("Identity token nonce does not match the request")
