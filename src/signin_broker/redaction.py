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
Redaction of identity tokens, nonces and personal data from logs and error messages.
"""

import re
from typing import Any


class CredentialSanitizer:
    """Sanitizer for identity-provider tokens and sensitive sign-in data."""

    PATTERNS = {
        # Three base64url segments starting with an encoded JSON header
        "jwt": re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]*"),
        "bearer_token": re.compile(r"(?:Bearer)\s+([A-Za-z0-9_\-\.=+/]{20,})", re.IGNORECASE),
        "token_field": re.compile(
            r"(?:id_token|identity_token|idToken|access_token|refresh_token)\s*[=:]\s*[\"\']?([^\s\"\'&,]+)[\"\']?",
            re.IGNORECASE,
        ),
        "nonce_field": re.compile(
            r"(?:raw_nonce|rawNonce|nonce)\s*[=:]\s*[\"\']?([^\s\"\'&,]+)[\"\']?",
            re.IGNORECASE,
        ),
        "email": re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}"),
    }

    # Sensitive field names to redact in structured data
    SENSITIVE_FIELDS = {
        "token",
        "id_token",
        "identity_token",
        "authorization_code",
        "nonce",
        "raw_nonce",
        "password",
        "secret",
        "email",
        "credential",
    }

    @classmethod
    def sanitize_string(cls, text: str, replacement: str = "[REDACTED]") -> str:
        """
        Sanitize sensitive information from a string.

        Args:
            text: String to sanitize
            replacement: Replacement text for fields matched by name

        Returns:
            Sanitized string
        """
        if not text:
            return text

        sanitized = text
        for pattern_name, pattern in cls.PATTERNS.items():
            if pattern.groups == 0:
                sanitized = pattern.sub(f"[REDACTED_{pattern_name.upper()}]", sanitized)
            else:
                sanitized = pattern.sub(
                    lambda m: m.group(0).replace(m.group(1), replacement),
                    sanitized,
                )

        # 64 hex characters is the shape of a nonce digest
        sanitized = re.sub(r"\b[0-9a-f]{64}\b", "[REDACTED_DIGEST]", sanitized)

        return sanitized

    @classmethod
    def sanitize_dict(cls, data: dict[str, Any], max_depth: int = 10) -> dict[str, Any]:
        """
        Recursively sanitize sensitive fields in a dictionary.

        Args:
            data: Dictionary to sanitize
            max_depth: Maximum recursion depth

        Returns:
            Sanitized dictionary
        """
        if max_depth <= 0:
            return {"error": "Max recursion depth reached"}

        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value, max_depth - 1)
            elif any(sensitive in key.lower() for sensitive in cls.SENSITIVE_FIELDS):
                sanitized[key] = "[REDACTED]" if value is not None else None
            elif isinstance(value, str):
                sanitized[key] = cls.sanitize_string(value)
            else:
                sanitized[key] = value

        return sanitized

    @classmethod
    def sanitize_error(cls, error: BaseException) -> str:
        """
        Sanitize an exception message.

        Args:
            error: Exception to sanitize

        Returns:
            Sanitized error message
        """
        return cls.sanitize_string(str(error))
