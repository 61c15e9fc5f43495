"""
Shared fixtures for sign-in broker tests
"""

from unittest.mock import AsyncMock, Mock

import jwt
import pytest

from signin_broker.auth.models import AppleIDCredential, Authorization, PersonName
from signin_broker.auth.storage import IdentityStore, InMemoryKeyValueStore
from signin_broker.config import BrokerConfig

SIGNING_KEY = "test-signing-key-0123456789abcdef-0123456789abcdef"


def make_identity_token(nonce_digest=None, **claims):
    """Encode an identity token shaped like the provider's, bound to the nonce digest"""
    payload = {"iss": "https://appleid.apple.com", "sub": "000123.abc", "aud": "com.example.app"}
    if nonce_digest is not None:
        payload["nonce"] = nonce_digest
    payload.update(claims)
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


def make_backend_user(uid="backend-uid", is_anonymous=False):
    user = Mock()
    user.uid = uid
    user.is_anonymous = is_anonymous
    return user


def make_authorization(token, user="000123.abc", email="a@b.com", given="A", family="B"):
    full_name = PersonName(given_name=given, family_name=family)
    credential = AppleIDCredential(
        user=user,
        identity_token=token.encode("utf-8") if isinstance(token, str) else token,
        email=email,
        full_name=full_name,
    )
    return Authorization(credential=credential)


@pytest.fixture
def broker_config():
    return BrokerConfig(
        provider_id="apple.com",
        requested_scopes=("full_name", "email"),
        nonce_length=32,
        verify_nonce_claim=True,
        credential_state_cache_ttl=0,
        credential_state_cache_size=16,
        key_prefix="test",
    )


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def identity_store(kv_store, broker_config):
    return IdentityStore(kv_store, broker_config)


@pytest.fixture
def change_request():
    request = Mock()
    request.commit = AsyncMock(return_value=None)
    return request


@pytest.fixture
def backend_client(change_request):
    """Backend session client with no current user and successful operations"""
    client = Mock()
    client.current_user = None
    client.sign_in = AsyncMock(return_value=make_backend_user())
    client.link = AsyncMock(return_value=make_backend_user())
    client.reauthenticate = AsyncMock(return_value=make_backend_user())
    client.create_profile_change_request = Mock(return_value=change_request)
    return client
