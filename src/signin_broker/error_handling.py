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
Error handling utilities with caller-friendly responses.
Turns sign-in failures into structured outcomes an application shell can act on.
"""

import logging
from typing import Any

from .auth.errors import (
    BackendError,
    CredentialStateError,
    ExternalAuthorizationError,
    MissingKeyError,
    MissingTokenError,
    NonceError,
    NotAuthenticatedError,
    UnexpectedCredentialTypeError,
)
from .auth.models import CredentialState
from .redaction import CredentialSanitizer

logger = logging.getLogger(__name__)


def create_error_response(error: Exception, context: str) -> dict[str, Any]:
    """
    Create error response with recovery hints.

    Args:
        error: The exception that occurred
        context: Context about where the error occurred

    Returns:
        Dict with sanitized error details and a suggested next action
    """
    error_type = type(error).__name__
    error_msg = CredentialSanitizer.sanitize_error(error)

    response: dict[str, Any] = {
        "success": False,
        "error": error_msg,
        "error_type": error_type,
        "context": context,
    }

    if isinstance(error, ExternalAuthorizationError):
        response.update(
            {
                "recoverable": True,
                "_diagnosis": "Authorization flow failed or was cancelled by the user",
                "_suggested_action": "offer_sign_in",
            }
        )

    elif isinstance(error, (UnexpectedCredentialTypeError, MissingTokenError)):
        response.update(
            {
                "recoverable": True,
                "_diagnosis": "Provider returned a credential that cannot be used for sign-in",
                "_suggested_action": "start_sign_in",
            }
        )

    elif isinstance(error, NonceError):
        response.update(
            {
                "recoverable": True,
                "_diagnosis": "Identity token is not bound to this sign-in attempt",
                "_suggested_action": "start_sign_in",
            }
        )

    elif isinstance(error, BackendError):
        response.update(
            {
                "recoverable": True,
                "_diagnosis": "Backend did not accept the identity token",
                "_suggested_action": "retry_later",
                "_cause": (
                    CredentialSanitizer.sanitize_error(error.error) if error.error else None
                ),
            }
        )

    elif isinstance(error, NotAuthenticatedError):
        response.update(
            {
                "recoverable": True,
                "_diagnosis": "No authenticated session to re-authenticate",
                "_suggested_action": "start_sign_in",
            }
        )

    elif isinstance(error, MissingKeyError):
        response.update(
            {
                "recoverable": True,
                "_diagnosis": "User never completed a provider sign-in on this device",
                "_suggested_action": "start_sign_in",
            }
        )

    elif isinstance(error, CredentialStateError):
        revoked = error.description in (
            CredentialState.REVOKED.value,
            CredentialState.NOT_FOUND.value,
            CredentialState.TRANSFERRED.value,
        )
        response.update(
            {
                "recoverable": not revoked,
                "_diagnosis": f"Provider reports credential state '{error.description}'",
                "_suggested_action": "sign_out" if revoked else "retry_later",
            }
        )

    else:
        logger.error(f"Unexpected error in {context}: {error_msg}")
        response.update(
            {
                "recoverable": False,
                "_diagnosis": f"Unexpected error in {context}",
                "_suggested_action": "check_logs",
            }
        )

    return response
