"""Unit tests for InvitationService create/renew and send limits."""

from datetime import datetime, timedelta, timezone

import pytest

from taskboard.adapter.error import IdentityProviderError
from taskboard.domain.error import (
    AlreadyActiveError,
    RateLimitedError,
    UpstreamFailureError,
    ValidationError,
)
from taskboard.domain.repository import InvitationRepository, ProfileRepository
from taskboard.domain.service import IdentityProvider, InvitationService
from taskboard.domain.value import Email, InvitationStatus, ProfileStatus, Role
from tests.factories import make_profile
from tests.harness import create_env_fixture

# Unit test fixture - everything mocked
unit_env = create_env_fixture()


async def _deactivated_account(unit_env, email: str = "ada@example.com"):
    """Confirmed identity whose profile was switched off."""
    provider = await unit_env.get(IdentityProvider)
    profiles = await unit_env.get(ProfileRepository)
    identity = provider.add_user(email, confirmed_at=datetime.now(timezone.utc))
    profile = make_profile(email, status=ProfileStatus.INACTIVE, profile_id=identity.id)
    await profiles.save(profile)
    return profile


class TestCreateOrRenew:
    """Tests for create_or_renew."""

    @pytest.mark.asyncio
    async def test_first_invite_creates_pending_invitation(self, unit_env):
        service = await unit_env.get(InvitationService)

        invitation = await service.create_or_renew("ada@example.com", "admin", "Hi")

        assert invitation.status == InvitationStatus.PENDING
        assert invitation.role == Role.ADMIN
        assert invitation.message == "Hi"
        assert invitation.send_count == 1
        assert invitation.daily_send_count == 1
        assert invitation.expires_at - invitation.invited_at == timedelta(days=30)
        assert service.stats(invitation).remaining_today == 2

    @pytest.mark.asyncio
    async def test_first_invite_is_emailed_by_the_provider(self, unit_env):
        service = await unit_env.get(InvitationService)
        provider = await unit_env.get(IdentityProvider)
        profiles = await unit_env.get(ProfileRepository)
        admin = make_profile("root@example.com", role=Role.ADMIN)

        invitation = await service.create_or_renew(
            "ada@example.com", "admin", invited_by=admin.id
        )

        assert provider.sent_invites == [
            (
                "ada@example.com",
                service.invite_link(invitation),
                {"role": "admin", "invited_by": str(admin.id)},
            )
        ]
        identity = await provider.find_user_by_email("ada@example.com")
        assert not identity.is_confirmed
        profile = await profiles.find_by_email(invitation.email)
        assert profile.id == identity.id
        assert profile.status == ProfileStatus.INACTIVE
        assert profile.confirmed_at is None
        assert profile.role == Role.ADMIN

    @pytest.mark.asyncio
    async def test_invite_link_points_at_accept_page(self, unit_env):
        service = await unit_env.get(InvitationService)

        invitation = await service.create_or_renew("ada@example.com")

        assert service.invite_link(invitation) == (
            f"https://board.test/auth/accept-invite?token={invitation.token.root}"
        )

    @pytest.mark.asyncio
    async def test_provider_failure_is_reported(self, unit_env):
        service = await unit_env.get(InvitationService)
        provider = await unit_env.get(IdentityProvider)
        repo = await unit_env.get(InvitationRepository)
        provider.fail_invites = True

        with pytest.raises(IdentityProviderError):
            await service.create_or_renew("ada@example.com")

        assert await repo.count(InvitationStatus.PENDING) == 1

    @pytest.mark.asyncio
    async def test_email_is_normalised(self, unit_env):
        service = await unit_env.get(InvitationService)

        invitation = await service.create_or_renew("  Ada@Example.COM ")

        assert invitation.email.root == "ada@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["", "ada", "ada@example", "a da@example.com"])
    async def test_invalid_email_rejected(self, unit_env, email):
        service = await unit_env.get(InvitationService)

        with pytest.raises(ValidationError, match="Valid email is required"):
            await service.create_or_renew(email)

    @pytest.mark.asyncio
    async def test_invalid_role_rejected(self, unit_env):
        service = await unit_env.get(InvitationService)

        with pytest.raises(ValidationError, match="Invalid role"):
            await service.create_or_renew("ada@example.com", "owner")

    @pytest.mark.asyncio
    async def test_renew_keeps_id_and_token(self, unit_env):
        service = await unit_env.get(InvitationService)
        provider = await unit_env.get(IdentityProvider)
        await _deactivated_account(unit_env)
        first = await service.create_or_renew("ada@example.com", "user")

        second = await service.create_or_renew("ada@example.com", "admin", "again")

        assert second.id == first.id
        assert second.token == first.token
        assert second.role == Role.ADMIN
        assert second.message == "again"
        assert second.send_count == 2
        assert second.daily_send_count == 2
        assert service.stats(second).remaining_today == 1
        # A confirmed identity signs in with the link, no provider email
        assert provider.sent_invites == []

    @pytest.mark.asyncio
    async def test_fourth_send_in_a_day_is_rate_limited(self, unit_env):
        service = await unit_env.get(InvitationService)
        provider = await unit_env.get(IdentityProvider)
        repo = await unit_env.get(InvitationRepository)
        for _ in range(3):
            invitation = await service.create_or_renew("ada@example.com")
        assert invitation.daily_send_count == 3
        assert service.stats(invitation).remaining_today == 0
        identity = await provider.find_user_by_email("ada@example.com")

        with pytest.raises(RateLimitedError) as exc_info:
            await service.create_or_renew("ada@example.com")

        assert exc_info.value.extra() == {"dailyCount": 3, "limit": 3}
        stored = await repo.find_by_id(invitation.id)
        assert stored.daily_send_count == 3
        assert stored.version == invitation.version
        assert identity.id in provider.users

    @pytest.mark.asyncio
    async def test_daily_counter_restarts_on_a_new_day(self, unit_env):
        service = await unit_env.get(InvitationService)
        repo = await unit_env.get(InvitationRepository)
        await _deactivated_account(unit_env)
        invitation = await service.create_or_renew("ada@example.com")
        yesterday = invitation.model_copy(
            update={
                "daily_send_count": 3,
                "daily_send_reset_at": datetime.now(timezone.utc).date()
                - timedelta(days=1),
            }
        )
        await repo.update(yesterday, invitation.version)

        renewed = await service.create_or_renew("ada@example.com")

        assert renewed.daily_send_count == 1
        assert renewed.send_count == 2
        assert service.stats(renewed).remaining_today == 2

    @pytest.mark.asyncio
    async def test_expired_invitation_is_revived(self, unit_env):
        service = await unit_env.get(InvitationService)
        repo = await unit_env.get(InvitationRepository)
        await _deactivated_account(unit_env)
        invitation = await service.create_or_renew("ada@example.com")
        expired = invitation.model_copy(update={"status": InvitationStatus.EXPIRED})
        await repo.update(expired, invitation.version)

        renewed = await service.create_or_renew("ada@example.com")

        assert renewed.id == invitation.id
        assert renewed.status == InvitationStatus.PENDING
        assert await repo.count(InvitationStatus.PENDING) == 1

    @pytest.mark.asyncio
    async def test_revoked_invitation_is_revived_with_a_new_identity(self, unit_env):
        service = await unit_env.get(InvitationService)
        provider = await unit_env.get(IdentityProvider)
        invitation = await service.create_or_renew("ada@example.com")
        await service.revoke(invitation.id)

        renewed = await service.create_or_renew("ada@example.com")

        assert renewed.id == invitation.id
        assert renewed.token == invitation.token
        assert renewed.status == InvitationStatus.PENDING
        assert len(provider.users) == 1

    @pytest.mark.asyncio
    async def test_accepted_invitation_is_not_renewed(self, unit_env):
        service = await unit_env.get(InvitationService)
        repo = await unit_env.get(InvitationRepository)
        invitation = await service.create_or_renew("ada@example.com")
        await service.accept(invitation.token.root)

        fresh = await service.create_or_renew("ada@example.com")

        assert fresh.id != invitation.id
        assert fresh.send_count == 1
        assert await repo.count() == 2

    @pytest.mark.asyncio
    async def test_active_account_rejected(self, unit_env):
        service = await unit_env.get(InvitationService)
        profiles = await unit_env.get(ProfileRepository)
        await profiles.save(make_profile("ada@example.com"))

        with pytest.raises(AlreadyActiveError):
            await service.create_or_renew("ada@example.com")

    @pytest.mark.asyncio
    async def test_inactive_confirmed_profile_can_be_invited(self, unit_env):
        service = await unit_env.get(InvitationService)
        profiles = await unit_env.get(ProfileRepository)
        profile = await _deactivated_account(unit_env)

        invitation = await service.create_or_renew("ada@example.com")

        assert invitation.status == InvitationStatus.PENDING
        assert await profiles.find_by_id(profile.id) == profile


class TestCleanReinvite:
    """Re-inviting an email whose earlier signup was never completed."""

    async def _abandoned_signup(self, unit_env, deletion_lag: int = 0):
        service = await unit_env.get(InvitationService)
        profiles = await unit_env.get(ProfileRepository)
        provider = await unit_env.get(IdentityProvider)
        provider.deletion_lag = deletion_lag

        first = await service.create_or_renew("ada@example.com")
        first = await service.resend(first.id)
        identity = await provider.find_user_by_email("ada@example.com")
        return service, profiles, provider, first, identity

    @pytest.mark.asyncio
    async def test_reinvite_starts_from_scratch(self, unit_env):
        service, profiles, provider, first, identity = await self._abandoned_signup(
            unit_env
        )
        assert first.send_count == 2

        invitation = await service.create_or_renew("ada@example.com")

        assert invitation.id != first.id
        assert invitation.token != first.token
        assert invitation.send_count == 1
        assert invitation.daily_send_count == 3
        assert await provider.get_user(identity.id) is None
        assert await profiles.find_by_id(identity.id) is None
        profile = await profiles.find_by_email(Email(root="ada@example.com"))
        assert profile.id != identity.id
        assert profile.is_abandoned_signup

    @pytest.mark.asyncio
    async def test_reinvite_waits_for_slow_deletion(self, unit_env):
        service, profiles, provider, first, identity = await self._abandoned_signup(
            unit_env, deletion_lag=3
        )

        invitation = await service.create_or_renew("ada@example.com")

        assert invitation.send_count == 1
        assert identity.id not in provider.users

    @pytest.mark.asyncio
    async def test_reinvite_aborts_when_deletion_never_confirms(self, unit_env):
        service, profiles, provider, first, identity = await self._abandoned_signup(
            unit_env, deletion_lag=10_000
        )
        repo = await unit_env.get(InvitationRepository)

        with pytest.raises(UpstreamFailureError):
            await service.create_or_renew("ada@example.com")

        assert await profiles.find_by_id(identity.id) is not None
        stored = await repo.find_by_id(first.id)
        assert stored.send_count == 2
