"""Integration tests for PostgresInvitationRepository.

Run against a migrated PostgreSQL database:

    DATABASE__URL=postgresql+asyncpg://... pytest -m integration
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

from taskboard.domain.error import ConcurrentUpdateError
from taskboard.domain.repository import InvitationRepository
from taskboard.domain.value import Email, InvitationStatus
from tests.factories import make_invitation
from tests.harness import create_env_fixture

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        "DATABASE__URL" not in os.environ, reason="DATABASE__URL not set"
    ),
]

# Integration test fixture
integration_env = create_env_fixture(unmock={"persistence"})


def _email() -> str:
    return f"it-{os.urandom(6).hex()}@example.com"


class TestInvitationRepositoryIntegration:
    """Database behaviour the domain service relies on."""

    @pytest.mark.asyncio
    async def test_create_and_find_by_token(self, integration_env):
        # Arrange
        repo = await integration_env.get(InvitationRepository)
        invitation = make_invitation(_email())

        # Act
        await repo.create(invitation)
        found = await repo.find_by_token(invitation.token)

        # Assert
        assert found is not None
        assert found.id == invitation.id
        assert found.version == 1

    @pytest.mark.asyncio
    async def test_second_pending_invitation_for_email_is_rejected(
        self, integration_env
    ):
        repo = await integration_env.get(InvitationRepository)
        email = _email()
        await repo.create(make_invitation(email))

        with pytest.raises(ConcurrentUpdateError):
            await repo.create(make_invitation(email))

        # The savepoint keeps the session usable
        assert await repo.exists_pending_for_email(Email(root=email))

    @pytest.mark.asyncio
    async def test_stale_version_update_is_rejected(self, integration_env):
        repo = await integration_env.get(InvitationRepository)
        invitation = await repo.create(make_invitation(_email()))
        first = await repo.update(
            invitation.model_copy(update={"send_count": 2}), invitation.version
        )

        with pytest.raises(ConcurrentUpdateError):
            await repo.update(
                invitation.model_copy(update={"send_count": 3}), invitation.version
            )

        stored = await repo.find_by_id(invitation.id)
        assert stored.send_count == 2
        assert stored.version == first.version == 2

    @pytest.mark.asyncio
    async def test_expire_overdue(self, integration_env):
        repo = await integration_env.get(InvitationRepository)
        overdue = await repo.create(
            make_invitation(_email(), expires_in=timedelta(seconds=-1))
        )

        await repo.expire_overdue(datetime.now(timezone.utc))

        stored = await repo.find_by_id(overdue.id)
        assert stored.status == InvitationStatus.EXPIRED
        assert stored.version == overdue.version + 1
