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
Configuration module for the Signin Broker
Centralizes all configuration values and environment variables
"""

import os
from dataclasses import dataclass, field
from typing import Any

MIN_NONCE_LENGTH = 32

# Values of signin_broker.auth.models.AuthorizationScope
SUPPORTED_SCOPES = ("full_name", "email")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_scopes() -> tuple[str, ...]:
    raw = os.getenv("SIGNIN_BROKER_SCOPES", "full_name,email")
    return tuple(scope.strip() for scope in raw.split(",") if scope.strip())


@dataclass
class BrokerConfig:
    """Configuration for the sign-in broker"""

    # Backend provider the identity token is exchanged with
    provider_id: str = field(
        default_factory=lambda: os.getenv("SIGNIN_BROKER_PROVIDER_ID", "apple.com")
    )

    # Scopes requested from the identity provider on every sign-in
    requested_scopes: tuple[str, ...] = field(default_factory=_env_scopes)

    # Nonce Configuration
    nonce_length: int = field(
        default_factory=lambda: int(os.getenv("SIGNIN_BROKER_NONCE_LENGTH", "32"))
    )
    verify_nonce_claim: bool = field(
        default_factory=lambda: _env_flag("SIGNIN_BROKER_VERIFY_NONCE", "true")
    )

    # Credential State Cache Configuration (ttl of 0 disables caching)
    credential_state_cache_ttl: float = field(
        default_factory=lambda: float(os.getenv("SIGNIN_BROKER_STATE_CACHE_TTL", "0"))
    )
    credential_state_cache_size: int = field(
        default_factory=lambda: int(os.getenv("SIGNIN_BROKER_STATE_CACHE_SIZE", "128"))
    )

    # Storage Keys
    key_prefix: str = field(
        default_factory=lambda: os.getenv("SIGNIN_BROKER_KEY_PREFIX", "signin_broker")
    )

    def __post_init__(self) -> None:
        if self.nonce_length < MIN_NONCE_LENGTH:
            raise ValueError(
                f"nonce_length must be at least {MIN_NONCE_LENGTH} bytes, got {self.nonce_length}"
            )
        if self.credential_state_cache_ttl < 0:
            raise ValueError("credential_state_cache_ttl cannot be negative")
        unknown = [
            scope
            for scope in self.requested_scopes
            if getattr(scope, "value", scope) not in SUPPORTED_SCOPES
        ]
        if unknown:
            raise ValueError(
                f"Unsupported requested_scopes {unknown}, expected any of {list(SUPPORTED_SCOPES)}"
            )

    @property
    def authorization_key_name(self) -> str:
        return f"{self.key_prefix}.authorization_key"

    @property
    def email_key_name(self) -> str:
        return f"{self.key_prefix}.email"

    @property
    def display_name_key_name(self) -> str:
        return f"{self.key_prefix}.user_name"

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary"""
        return {
            "provider_id": self.provider_id,
            "requested_scopes": list(self.requested_scopes),
            "nonce_length": self.nonce_length,
            "verify_nonce_claim": self.verify_nonce_claim,
            "credential_state_cache_ttl": self.credential_state_cache_ttl,
            "credential_state_cache_size": self.credential_state_cache_size,
            "key_prefix": self.key_prefix,
        }


# Global configuration instance
config = BrokerConfig()
