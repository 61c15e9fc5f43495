"""
Tests for sign-in attempts and nonce binding
"""

import pytest

from conftest import make_identity_token
from signin_broker.auth.attempt import SignInAttempt
from signin_broker.auth.errors import NonceMismatchError, NonceReusedError
from signin_broker.auth.models import AuthorizationScope
from signin_broker.config import BrokerConfig


class TestAuthorizationRequest:
    """Test the outbound request built by an attempt"""

    def test_request_carries_digest_not_raw_value(self, broker_config):
        attempt = SignInAttempt(config=broker_config)

        assert attempt.request.nonce == attempt.nonce.digest
        assert attempt.request.nonce != attempt.nonce.value

    def test_default_scopes_from_config(self, broker_config):
        attempt = SignInAttempt(config=broker_config)

        assert attempt.request.requested_scopes == (
            AuthorizationScope.FULL_NAME,
            AuthorizationScope.EMAIL,
        )

    def test_explicit_scopes(self, broker_config):
        attempt = SignInAttempt(scopes=[AuthorizationScope.EMAIL], config=broker_config)
        assert attempt.request.requested_scopes == (AuthorizationScope.EMAIL,)

    def test_state_is_passed_through(self, broker_config):
        attempt = SignInAttempt(state="opaque-state", config=broker_config)
        assert attempt.request.state == "opaque-state"

    def test_each_attempt_has_its_own_nonce(self, broker_config):
        first = SignInAttempt(config=broker_config)
        second = SignInAttempt(config=broker_config)

        assert first.nonce.value != second.nonce.value
        assert first.request.nonce != second.request.nonce


class TestNonceConsumption:
    """Test single-use release of the raw nonce"""

    def test_consume_returns_raw_value(self, broker_config):
        attempt = SignInAttempt(config=broker_config)
        token = make_identity_token(attempt.nonce.digest)

        assert attempt.consume(token) == attempt.nonce.value
        assert attempt.consumed is True

    def test_second_consume_is_rejected(self, broker_config):
        attempt = SignInAttempt(config=broker_config)
        token = make_identity_token(attempt.nonce.digest)
        attempt.consume(token)

        with pytest.raises(NonceReusedError):
            attempt.consume(token)

    def test_token_bound_to_another_attempt_is_rejected(self, broker_config):
        attempt = SignInAttempt(config=broker_config)
        other = SignInAttempt(config=broker_config)
        token = make_identity_token(other.nonce.digest)

        with pytest.raises(NonceMismatchError):
            attempt.consume(token)

    def test_failed_verification_still_consumes(self, broker_config):
        attempt = SignInAttempt(config=broker_config)
        with pytest.raises(NonceMismatchError):
            attempt.consume(make_identity_token("0" * 64))

        with pytest.raises(NonceReusedError):
            attempt.consume(make_identity_token(attempt.nonce.digest))

    def test_token_without_nonce_claim_is_rejected(self, broker_config):
        attempt = SignInAttempt(config=broker_config)

        with pytest.raises(NonceMismatchError):
            attempt.consume(make_identity_token())

    def test_non_jwt_token_is_rejected(self, broker_config):
        attempt = SignInAttempt(config=broker_config)

        with pytest.raises(NonceMismatchError):
            attempt.consume("not-a-jwt")

    def test_expired_token_is_not_rejected_locally(self, broker_config):
        """Expiry and signature are the backend's job"""
        attempt = SignInAttempt(config=broker_config)
        token = make_identity_token(attempt.nonce.digest, exp=1)

        assert attempt.consume(token) == attempt.nonce.value

    def test_claim_check_can_be_disabled(self):
        config = BrokerConfig(verify_nonce_claim=False)
        attempt = SignInAttempt(config=config)

        assert attempt.consume("opaque-token") == attempt.nonce.value
        with pytest.raises(NonceReusedError):
            attempt.consume("opaque-token")
