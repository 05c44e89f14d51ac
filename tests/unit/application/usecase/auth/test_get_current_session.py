"""Unit tests for GetCurrentSessionUseCase."""

import pytest

from taskboard.application.usecase.auth import (
    GetCurrentSessionRequest,
    GetCurrentSessionUseCase,
)
from taskboard.domain.repository import ProfileRepository
from taskboard.domain.service import JWTService
from taskboard.domain.value import ProfileStatus, Role
from tests.factories import make_profile
from tests.harness import create_env_fixture

unit_env = create_env_fixture()


class TestGetCurrentSessionUseCase:
    """Tests for GetCurrentSessionUseCase."""

    @pytest.mark.asyncio
    async def test_no_cookie(self, unit_env):
        use_case = await unit_env.get(GetCurrentSessionUseCase)

        response = await use_case.execute(GetCurrentSessionRequest())

        assert response.authenticated is False
        assert response.to_session() is None

    @pytest.mark.asyncio
    async def test_invalid_token(self, unit_env):
        use_case = await unit_env.get(GetCurrentSessionUseCase)

        response = await use_case.execute(GetCurrentSessionRequest(token="garbage"))

        assert response.authenticated is False

    @pytest.mark.asyncio
    async def test_role_comes_from_stored_profile(self, unit_env):
        """A token minted for a user reflects a later promotion to admin."""
        # Arrange
        profiles = await unit_env.get(ProfileRepository)
        jwt_service = await unit_env.get(JWTService)
        profile = make_profile("ada@example.com", role=Role.USER)
        await profiles.save(profile)
        token = jwt_service.create_token(profile)
        await profiles.save(profile.model_copy(update={"role": Role.ADMIN}))
        use_case = await unit_env.get(GetCurrentSessionUseCase)

        # Act
        response = await use_case.execute(GetCurrentSessionRequest(token=token))

        # Assert
        session = response.to_session()
        assert session.profile_id == profile.id
        assert session.is_admin

    @pytest.mark.asyncio
    async def test_deactivated_profile_loses_session(self, unit_env):
        profiles = await unit_env.get(ProfileRepository)
        jwt_service = await unit_env.get(JWTService)
        profile = make_profile("ada@example.com")
        await profiles.save(profile)
        token = jwt_service.create_token(profile)
        await profiles.save(profile.model_copy(update={"status": ProfileStatus.INACTIVE}))
        use_case = await unit_env.get(GetCurrentSessionUseCase)

        response = await use_case.execute(GetCurrentSessionRequest(token=token))

        assert response.authenticated is False
