"""
One-time nonce generation for authorization requests.

The provider receives only the SHA-256 digest of the nonce. The raw value is
handed to the backend at credential-exchange time, which hashes it again and
compares it with the ``nonce`` claim of the identity token.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass, field
from typing import Optional

from ..config import MIN_NONCE_LENGTH, config


@dataclass(frozen=True)
class Nonce:
    """Random value bound to exactly one authorization request."""

    value: str = field(repr=False)
    digest: str

    @staticmethod
    def sha256(value: str) -> str:
        """Hex-encoded SHA-256 digest of the UTF-8 encoded value."""
        return hashlib.sha256(value.encode("utf-8")).hexdigest()

    @classmethod
    def generate(cls, length: Optional[int] = None) -> Nonce:
        """Create a fresh nonce.

        Args:
            length: Bytes of entropy; defaults to ``config.nonce_length``

        Raises:
            ValueError: If fewer than 32 bytes of entropy are requested
        """
        length = config.nonce_length if length is None else length
        if length < MIN_NONCE_LENGTH:
            raise ValueError(f"Nonce length must be at least {MIN_NONCE_LENGTH} bytes")

        value = secrets.token_urlsafe(length)
        return cls(value=value, digest=cls.sha256(value))


def generate_nonce(length: Optional[int] = None) -> Nonce:
    return Nonce.generate(length)
