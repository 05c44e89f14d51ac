"""Unit tests for CompleteLoginUseCase."""

from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from dishka import AsyncContainer

from taskboard.adapter.error import IdentityProviderError
from taskboard.application.usecase.auth import (
    BeginLoginRequest,
    BeginLoginUseCase,
    CompleteLoginRequest,
    CompleteLoginUseCase,
    GetCurrentSessionRequest,
    GetCurrentSessionUseCase,
)
from taskboard.domain.error import InactiveNoInviteError, NotInvitedError
from taskboard.domain.repository import ProfileRepository
from taskboard.domain.service import IdentityProvider, InvitationService
from taskboard.domain.value import ProfileStatus, Role
from tests.factories import make_profile
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


async def _signed_in_code(unit_env: AsyncContainer, email: str) -> str:
    """Confirm the invited identity for the email (or a new one) and sign it in."""
    provider = await unit_env.get(IdentityProvider)
    identity = await provider.find_user_by_email(email) or provider.add_user(email)
    provider.confirm_user(identity.id)
    return provider.issue_code(identity.id)


class TestCompleteLoginUseCase:
    """Tests for CompleteLoginUseCase."""

    @pytest.mark.asyncio
    async def test_invited_admin_lands_on_admin_dashboard(self, unit_env: AsyncContainer):
        """An invited admin gets a session token and the /admin redirect."""
        # Arrange
        invitation_service = await unit_env.get(InvitationService)
        invitation = await invitation_service.create_or_renew("ada@example.com", "admin")
        await invitation_service.accept(invitation.token.root)
        code = await _signed_in_code(unit_env, "ada@example.com")
        use_case = await unit_env.get(CompleteLoginUseCase)

        # Act
        response = await use_case.execute(
            CompleteLoginRequest(code=code, code_verifier="mock-verifier")
        )

        # Assert
        assert response.role == Role.ADMIN
        assert response.redirect_path == "/admin"
        session_use_case = await unit_env.get(GetCurrentSessionUseCase)
        current = await session_use_case.execute(
            GetCurrentSessionRequest(token=response.token)
        )
        assert current.authenticated
        assert current.session.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_invited_user_lands_on_user_dashboard(self, unit_env: AsyncContainer):
        invitation_service = await unit_env.get(InvitationService)
        await invitation_service.create_or_renew("bob@example.com")
        code = await _signed_in_code(unit_env, "bob@example.com")
        use_case = await unit_env.get(CompleteLoginUseCase)

        response = await use_case.execute(
            CompleteLoginRequest(code=code, code_verifier="mock-verifier")
        )

        assert response.role == Role.USER
        assert response.redirect_path == "/user"

    @pytest.mark.asyncio
    async def test_next_path_is_honoured(self, unit_env: AsyncContainer):
        invitation_service = await unit_env.get(InvitationService)
        await invitation_service.create_or_renew("ada@example.com", "admin")
        code = await _signed_in_code(unit_env, "ada@example.com")
        use_case = await unit_env.get(CompleteLoginUseCase)

        response = await use_case.execute(
            CompleteLoginRequest(
                code=code, code_verifier="mock-verifier", next="/admin/invitations"
            )
        )

        assert response.redirect_path == "/admin/invitations"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("next_path", ["/admin", "/admin/invitations", "//evil.test"])
    async def test_user_is_not_sent_to_admin_or_offsite(
        self, unit_env: AsyncContainer, next_path
    ):
        invitation_service = await unit_env.get(InvitationService)
        await invitation_service.create_or_renew("bob@example.com")
        code = await _signed_in_code(unit_env, "bob@example.com")
        use_case = await unit_env.get(CompleteLoginUseCase)

        response = await use_case.execute(
            CompleteLoginRequest(code=code, code_verifier="mock-verifier", next=next_path)
        )

        assert response.redirect_path == "/user"

    @pytest.mark.asyncio
    async def test_uninvited_identity_is_signed_out(self, unit_env: AsyncContainer):
        """Denied sign-ins end the provider session before failing."""
        # Arrange
        provider = await unit_env.get(IdentityProvider)
        code = await _signed_in_code(unit_env, "eve@example.com")
        use_case = await unit_env.get(CompleteLoginUseCase)

        # Act / Assert
        with pytest.raises(NotInvitedError):
            await use_case.execute(
                CompleteLoginRequest(code=code, code_verifier="mock-verifier")
            )
        assert len(provider.signed_out) == 1

    @pytest.mark.asyncio
    async def test_inactive_profile_without_invitation(self, unit_env: AsyncContainer):
        provider = await unit_env.get(IdentityProvider)
        profiles = await unit_env.get(ProfileRepository)
        identity = provider.add_user(
            "eve@example.com", confirmed_at=datetime.now(timezone.utc)
        )
        await profiles.save(
            make_profile(
                "eve@example.com",
                status=ProfileStatus.INACTIVE,
                profile_id=identity.id,
            )
        )
        use_case = await unit_env.get(CompleteLoginUseCase)

        with pytest.raises(InactiveNoInviteError):
            await use_case.execute(
                CompleteLoginRequest(
                    code=provider.issue_code(identity.id),
                    code_verifier="mock-verifier",
                )
            )
        assert provider.signed_out

    @pytest.mark.asyncio
    async def test_bad_code(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(CompleteLoginUseCase)

        with pytest.raises(IdentityProviderError):
            await use_case.execute(
                CompleteLoginRequest(code="bogus", code_verifier="mock-verifier")
            )


class TestBeginLoginUseCase:
    """Tests for BeginLoginUseCase."""

    @staticmethod
    def _redirect_to(authorization_url: str) -> str:
        return parse_qs(urlparse(authorization_url).query)["redirect_to"][0]

    @pytest.mark.asyncio
    async def test_redirects_back_to_callback(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(BeginLoginUseCase)

        response = await use_case.execute(BeginLoginRequest(next="/admin/invitations"))

        assert response.code_verifier == "mock-verifier"
        redirect_to = self._redirect_to(response.authorization_url)
        callback = urlparse(redirect_to)
        assert f"{callback.scheme}://{callback.netloc}{callback.path}" == (
            "https://board.test/auth/callback"
        )
        assert parse_qs(callback.query) == {"next": ["/admin/invitations"]}

    @pytest.mark.asyncio
    async def test_next_with_query_is_encoded(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(BeginLoginUseCase)

        response = await use_case.execute(BeginLoginRequest(next="/user?tab=a&b=c"))

        callback = urlparse(self._redirect_to(response.authorization_url))
        assert parse_qs(callback.query) == {"next": ["/user?tab=a&b=c"]}

    @pytest.mark.asyncio
    async def test_offsite_next_is_dropped(self, unit_env: AsyncContainer):
        use_case = await unit_env.get(BeginLoginUseCase)

        response = await use_case.execute(BeginLoginRequest(next="//evil.test/x"))

        assert self._redirect_to(response.authorization_url) == (
            "https://board.test/auth/callback"
        )
