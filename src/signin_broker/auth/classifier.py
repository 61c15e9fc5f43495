"""
Normalization of external authorization outcomes.

Turns whatever the authorization flow produced (a provider credential or the
exception it raised) into a NormalizedCredential, or raises the matching
classified failure.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import ExternalAuthorizationError, MissingTokenError, UnexpectedCredentialTypeError
from .models import AppleIDCredential, Authorization, NormalizedCredential

logger = logging.getLogger(__name__)


def _decode_identity_token(identity_token: bytes | None) -> str:
    if identity_token is None:
        raise MissingTokenError()
    if not isinstance(identity_token, bytes):
        raise MissingTokenError(
            f"Identity token must be bytes, not {type(identity_token).__name__}"
        )
    try:
        token = identity_token.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MissingTokenError("Identity token is not valid UTF-8") from e
    if not token:
        raise MissingTokenError()
    return token


def classify_authorization_result(outcome: Any) -> NormalizedCredential:
    """Classify the result of an external authorization attempt.

    Args:
        outcome: An Authorization on success, or the exception the flow raised

    Returns:
        NormalizedCredential built from the provider credential

    Raises:
        ExternalAuthorizationError: The flow failed or was cancelled
        UnexpectedCredentialTypeError: The credential is not an AppleIDCredential
        MissingTokenError: The credential has no decodable identity token
    """
    if isinstance(outcome, BaseException):
        logger.info(f"Authorization flow failed: {type(outcome).__name__}")
        raise ExternalAuthorizationError(outcome) from outcome

    if not isinstance(outcome, Authorization):
        raise UnexpectedCredentialTypeError(type(outcome).__name__)

    credential = outcome.credential
    if not isinstance(credential, AppleIDCredential):
        raise UnexpectedCredentialTypeError(type(credential).__name__)

    token = _decode_identity_token(credential.identity_token)

    return NormalizedCredential(
        external_user_id=credential.user,
        identity_token=token,
        email=credential.email,
        full_name=credential.full_name,
    )


class CredentialClassifier:
    """Object wrapper around classify_authorization_result for injection."""

    def classify(self, outcome: Any) -> NormalizedCredential:
        return classify_authorization_result(outcome)
