#!/usr/bin/env python3
"""
Signin Broker
Brokers a platform identity provider sign-in into a backend authentication session

Logging goes to stderr; set SIGNIN_BROKER_LOG_LEVEL to change the level.
Identity tokens, raw nonces and emails are redacted before they are logged.
"""

import logging
import os
import sys

logging.basicConfig(
    level=getattr(
        logging, os.getenv("SIGNIN_BROKER_LOG_LEVEL", "WARNING").upper(), logging.WARNING
    ),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

from .auth import (  # noqa: E402
    AppleIDCredential,
    Authorization,
    AuthorizationRequest,
    AuthorizationScope,
    CredentialState,
    IdentityStore,
    InMemoryKeyValueStore,
    NormalizedCredential,
    PersonName,
    SessionClassification,
    SignInAttempt,
)
from .config import BrokerConfig, config  # noqa: E402
from .error_handling import create_error_response  # noqa: E402
from .manager import AuthenticationManager  # noqa: E402

__version__ = "0.1.0"

__all__ = [
    "AppleIDCredential",
    "AuthenticationManager",
    "Authorization",
    "AuthorizationRequest",
    "AuthorizationScope",
    "BrokerConfig",
    "CredentialState",
    "IdentityStore",
    "InMemoryKeyValueStore",
    "NormalizedCredential",
    "PersonName",
    "SessionClassification",
    "SignInAttempt",
    "config",
    "create_error_response",
]
