"""Unit tests for the authentication routes."""

from datetime import datetime, timezone

import pytest

from taskboard.domain.repository import InvitationRepository, ProfileRepository
from taskboard.domain.service import IdentityProvider, InvitationService
from taskboard.domain.value import ProfileStatus, Role
from tests.factories import make_invitation, make_profile
from tests.harness import create_api_fixture

api_env = create_api_fixture()


async def _callback(
    api_env,
    email: str,
    verifier: str | None = "mock-verifier",
    next_path: str | None = None,
):
    provider = await api_env.get(IdentityProvider)
    identity = await provider.find_user_by_email(email) or provider.add_user(email)
    provider.confirm_user(identity.id)
    headers = {"Cookie": f"auth_verifier={verifier}"} if verifier else {}
    params = {"code": provider.issue_code(identity.id)}
    if next_path:
        params["next"] = next_path
    return await api_env.client.get("/auth/callback", params=params, headers=headers)


class TestAcceptInvite:
    """Tests for POST /auth/accept-invite."""

    @pytest.mark.asyncio
    async def test_accept(self, api_env):
        service = await api_env.get(InvitationService)
        invitation = await service.create_or_renew("ada@example.com", "admin")

        response = await api_env.client.post(
            "/auth/accept-invite", json={"token": invitation.token.root}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": (
                "Invitation accepted! Please sign in with Google to complete "
                "your account setup."
            ),
            "email": "ada@example.com",
            "role": "admin",
        }

    @pytest.mark.asyncio
    async def test_accept_twice_reports_email_and_role(self, api_env):
        service = await api_env.get(InvitationService)
        invitation = await service.create_or_renew("ada@example.com")
        await service.accept(invitation.token.root)

        response = await api_env.client.post(
            "/auth/accept-invite", json={"token": invitation.token.root}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "ALREADY_ACCEPTED"
        assert data["email"] == "ada@example.com"
        assert data["role"] == "user"

    @pytest.mark.asyncio
    async def test_missing_token(self, api_env):
        response = await api_env.client.post("/auth/accept-invite", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_token(self, api_env):
        response = await api_env.client.post(
            "/auth/accept-invite", json={"token": "nope"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_revoked(self, api_env):
        service = await api_env.get(InvitationService)
        invitation = await service.create_or_renew("ada@example.com")
        await service.revoke(invitation.id)

        response = await api_env.client.post(
            "/auth/accept-invite", json={"token": invitation.token.root}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "REVOKED"


class TestLogin:
    """Tests for GET /auth/login."""

    @pytest.mark.asyncio
    async def test_redirects_to_provider_with_verifier_cookie(self, api_env):
        response = await api_env.client.get("/auth/login")

        assert response.status_code == 302
        assert response.headers["location"].startswith(
            "https://identity.test/authorize?"
        )
        cookie = response.headers["set-cookie"]
        assert "auth_verifier=mock-verifier" in cookie
        assert "HttpOnly" in cookie
        assert "Path=/auth" in cookie


class TestCallback:
    """Tests for GET /auth/callback."""

    @pytest.mark.asyncio
    async def test_invited_admin_gets_session_and_admin_redirect(self, api_env):
        # Arrange
        service = await api_env.get(InvitationService)
        await service.create_or_renew("ada@example.com", "admin")

        # Act
        response = await _callback(api_env, "ada@example.com")

        # Assert
        assert response.status_code == 302
        assert response.headers["location"] == "https://board.test/admin"
        cookies = response.headers.get_list("set-cookie")
        assert any(c.startswith("auth_token=") for c in cookies)

    @pytest.mark.asyncio
    async def test_invited_user_redirected_to_user_dashboard(self, api_env):
        service = await api_env.get(InvitationService)
        await service.create_or_renew("bob@example.com")

        response = await _callback(api_env, "bob@example.com")

        assert response.headers["location"] == "https://board.test/user"

    @pytest.mark.asyncio
    async def test_next_path_from_login_is_followed(self, api_env):
        service = await api_env.get(InvitationService)
        await service.create_or_renew("ada@example.com", "admin")

        response = await _callback(
            api_env, "ada@example.com", next_path="/admin/invitations"
        )

        assert response.headers["location"] == (
            "https://board.test/admin/invitations"
        )

    @pytest.mark.asyncio
    async def test_email_of_another_account_is_refused(self, api_env):
        invitations = await api_env.get(InvitationRepository)
        profiles = await api_env.get(ProfileRepository)
        existing = make_profile("ada@example.com")
        await profiles.save(existing)
        await invitations.create(make_invitation("ada@example.com"))

        response = await _callback(api_env, "ada@example.com")

        assert response.headers["location"] == "https://board.test/auth/auth-code-error"
        assert await profiles.find_by_email(existing.email) == existing

    @pytest.mark.asyncio
    async def test_uninvited_redirected_to_access_denied(self, api_env):
        response = await _callback(api_env, "eve@example.com")

        assert response.status_code == 302
        assert response.headers["location"] == (
            "https://board.test/auth/access-denied?reason=not-invited"
        )
        cookies = response.headers.get_list("set-cookie")
        assert not any(c.startswith("auth_token=") for c in cookies)

    @pytest.mark.asyncio
    async def test_inactive_redirected_to_access_denied(self, api_env):
        provider = await api_env.get(IdentityProvider)
        identity = provider.add_user(
            "eve@example.com", confirmed_at=datetime.now(timezone.utc)
        )
        await api_env.sign_in_as(
            make_profile(
                "eve@example.com",
                status=ProfileStatus.INACTIVE,
                profile_id=identity.id,
            )
        )

        response = await api_env.client.get(
            "/auth/callback",
            params={"code": provider.issue_code(identity.id)},
            headers={"Cookie": "auth_verifier=mock-verifier"},
        )

        assert response.headers["location"].endswith(
            "/auth/access-denied?reason=inactive"
        )

    @pytest.mark.asyncio
    async def test_missing_verifier(self, api_env):
        response = await _callback(api_env, "ada@example.com", verifier=None)

        assert response.headers["location"] == "https://board.test/auth/auth-code-error"

    @pytest.mark.asyncio
    async def test_bad_code(self, api_env):
        response = await api_env.client.get(
            "/auth/callback",
            params={"code": "bogus"},
            headers={"Cookie": "auth_verifier=mock-verifier"},
        )

        assert response.headers["location"] == "https://board.test/auth/auth-code-error"


class TestSession:
    """Tests for GET /auth/me and POST /auth/logout."""

    @pytest.mark.asyncio
    async def test_me_without_cookie(self, api_env):
        response = await api_env.client.get("/auth/me")

        assert response.status_code == 200
        assert response.json() == {"authenticated": False, "session": None}

    @pytest.mark.asyncio
    async def test_me_with_session(self, api_env):
        profile = make_profile("ada@example.com", role=Role.ADMIN)
        headers = await api_env.sign_in_as(profile)

        response = await api_env.client.get("/auth/me", headers=headers)

        assert response.json() == {
            "authenticated": True,
            "session": {
                "profileId": str(profile.id),
                "email": "ada@example.com",
                "role": "admin",
            },
        }

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, api_env):
        response = await api_env.client.post("/auth/logout")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert 'auth_token=""' in response.headers["set-cookie"]
