"""
Tests for the authentication decision engine
"""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from conftest import make_backend_user
from signin_broker.auth.errors import BackendError
from signin_broker.auth.models import (
    BackendCredential,
    NormalizedCredential,
    PersonName,
    SessionClassification,
)
from signin_broker.auth.orchestrator import AuthenticationOrchestrator


def make_credential(email="a@b.com", given="A", family="B"):
    full_name = PersonName(given_name=given, family_name=family)
    return NormalizedCredential(
        external_user_id="000123.abc",
        identity_token="identity-token",
        email=email,
        full_name=full_name,
    )


@pytest.fixture
def orchestrator(backend_client, identity_store, broker_config):
    return AuthenticationOrchestrator(backend_client, identity_store, config=broker_config)


class TestDecisionTable:
    """Test that exactly one backend operation runs per session state"""

    @pytest.mark.asyncio
    async def test_authenticated_session_reauthenticates(self, orchestrator, backend_client):
        result = await orchestrator.authenticate(
            make_credential(), SessionClassification.AUTHENTICATED, "raw-nonce"
        )

        assert result is True
        backend_client.reauthenticate.assert_awaited_once()
        backend_client.sign_in.assert_not_called()
        backend_client.link.assert_not_called()

    @pytest.mark.asyncio
    async def test_anonymous_session_links(self, orchestrator, backend_client):
        result = await orchestrator.authenticate(
            make_credential(), SessionClassification.ANONYMOUS, "raw-nonce"
        )

        assert result is True
        backend_client.link.assert_awaited_once()
        backend_client.sign_in.assert_not_called()
        backend_client.reauthenticate.assert_not_called()

    @pytest.mark.asyncio
    async def test_absent_session_signs_in(self, orchestrator, backend_client):
        result = await orchestrator.authenticate(
            make_credential(), SessionClassification.ABSENT, "raw-nonce"
        )

        assert result is True
        backend_client.sign_in.assert_awaited_once()
        backend_client.link.assert_not_called()
        backend_client.reauthenticate.assert_not_called()

    @pytest.mark.asyncio
    async def test_backend_receives_token_and_raw_nonce(self, orchestrator, backend_client):
        await orchestrator.authenticate(
            make_credential(), SessionClassification.ABSENT, "raw-nonce"
        )

        (credential,), _ = backend_client.sign_in.call_args
        assert credential == BackendCredential(
            provider_id="apple.com", id_token="identity-token", raw_nonce="raw-nonce"
        )


class TestBackendFailures:
    """Test the single result handler"""

    @pytest.mark.asyncio
    async def test_no_user_is_backend_error(self, orchestrator, backend_client):
        backend_client.sign_in.return_value = None

        with pytest.raises(BackendError) as exc_info:
            await orchestrator.authenticate(
                make_credential(), SessionClassification.ABSENT, "raw-nonce"
            )

        assert exc_info.value.error is None

    @pytest.mark.asyncio
    async def test_backend_exception_is_wrapped(self, orchestrator, backend_client):
        cause = ConnectionError("network unreachable")
        backend_client.link.side_effect = cause

        with pytest.raises(BackendError) as exc_info:
            await orchestrator.authenticate(
                make_credential(), SessionClassification.ANONYMOUS, "raw-nonce"
            )

        assert exc_info.value.error is cause
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_failed_sign_in_skips_profile_sync(
        self, orchestrator, backend_client, change_request, identity_store
    ):
        backend_client.sign_in.return_value = None

        with pytest.raises(BackendError):
            await orchestrator.sign_in(make_credential(), "raw-nonce")

        change_request.commit.assert_not_called()
        assert identity_store.display_name is None


class TestProfileReconciliation:
    """Test profile sync after a successful sign-in"""

    @pytest.mark.asyncio
    async def test_email_and_display_name_are_stored(
        self, orchestrator, identity_store, change_request
    ):
        await orchestrator.reconcile_profile(make_credential())

        assert identity_store.email == "a@b.com"
        assert identity_store.display_name == "A B"
        change_request.commit.assert_awaited_once_with("A B")

    @pytest.mark.asyncio
    async def test_absent_email_does_not_overwrite(self, orchestrator, identity_store):
        identity_store.email = "old@b.com"

        await orchestrator.reconcile_profile(make_credential(email=None))
        assert identity_store.email == "old@b.com"

        await orchestrator.reconcile_profile(make_credential(email=""))
        assert identity_store.email == "old@b.com"

    @pytest.mark.asyncio
    async def test_empty_name_skips_profile_update(
        self, orchestrator, identity_store, change_request, backend_client
    ):
        identity_store.display_name = "Previous Name"

        await orchestrator.reconcile_profile(make_credential(given="", family=None))

        change_request.commit.assert_not_called()
        backend_client.create_profile_change_request.assert_not_called()
        assert identity_store.display_name == "Previous Name"

    @pytest.mark.asyncio
    async def test_no_profile_edit_capability(self, orchestrator, identity_store, backend_client):
        backend_client.create_profile_change_request.return_value = None

        await orchestrator.reconcile_profile(make_credential())

        assert identity_store.display_name is None
        assert identity_store.email == "a@b.com"

    @pytest.mark.asyncio
    async def test_commit_failure_is_soft(
        self, backend_client, identity_store, broker_config, change_request, caplog
    ):
        hook = Mock()
        cause = RuntimeError("profile service down")
        change_request.commit.side_effect = cause
        orchestrator = AuthenticationOrchestrator(
            backend_client, identity_store, on_profile_sync_error=hook, config=broker_config
        )

        with caplog.at_level(logging.WARNING):
            result = await orchestrator.sign_in(make_credential(), "raw-nonce")

        assert result is True
        assert identity_store.display_name == "A B"
        hook.assert_called_once_with(cause)
        assert "Profile display name commit failed" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_error_hook_does_not_fail_sign_in(
        self, backend_client, identity_store, broker_config, change_request, caplog
    ):
        cause = RuntimeError("profile service down")
        change_request.commit.side_effect = cause
        hook = Mock(side_effect=ValueError("hook failed"))
        orchestrator = AuthenticationOrchestrator(
            backend_client, identity_store, on_profile_sync_error=hook, config=broker_config
        )

        with caplog.at_level(logging.WARNING):
            result = await orchestrator.sign_in(make_credential(), "raw-nonce")

        assert result is True
        hook.assert_called_once_with(cause)
        assert "Profile sync error hook failed" in caplog.text

    @pytest.mark.asyncio
    async def test_sign_in_classifies_session_when_not_given(self, orchestrator, backend_client):
        backend_client.current_user = make_backend_user(is_anonymous=True)

        await orchestrator.sign_in(make_credential(), "raw-nonce")

        backend_client.link.assert_awaited_once()
        backend_client.sign_in.assert_not_called()


class TestUserRepository:
    """Test the optional application-level user record save"""

    @pytest.fixture
    def repository(self):
        repository = Mock()
        repository.save_user = AsyncMock(return_value=None)
        return repository

    @pytest.fixture
    def orchestrator(self, backend_client, identity_store, broker_config, repository):
        return AuthenticationOrchestrator(
            backend_client, identity_store, user_repository=repository, config=broker_config
        )

    @pytest.mark.asyncio
    async def test_saves_user_with_name_and_email(self, orchestrator, repository):
        await orchestrator.reconcile_profile(make_credential())

        repository.save_user.assert_awaited_once_with(name="A B", email="a@b.com")

    @pytest.mark.asyncio
    async def test_skips_save_without_email(self, orchestrator, repository):
        await orchestrator.reconcile_profile(make_credential(email=None))
        repository.save_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_save_without_name(self, orchestrator, repository):
        await orchestrator.reconcile_profile(make_credential(given=None, family=None))
        repository.save_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_saves_even_when_commit_fails(self, orchestrator, repository, change_request):
        change_request.commit.side_effect = RuntimeError("commit failed")

        await orchestrator.reconcile_profile(make_credential())

        repository.save_user.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_repository_error_passes_through(self, orchestrator, repository):
        cause = LookupError("user table unavailable")
        repository.save_user.side_effect = cause

        with pytest.raises(LookupError) as exc_info:
            await orchestrator.reconcile_profile(make_credential())

        assert exc_info.value is cause
