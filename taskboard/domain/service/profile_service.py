"""Profile domain service."""

import logfire

from taskboard.domain.repository import ProfileRepository
from taskboard.domain.value import ProfileId, Session

from .base import Service


class ProfileService(Service):
    """Domain service for account profiles."""

    def __init__(self, profile_repository: ProfileRepository) -> None:
        self.profile_repository = profile_repository

    async def resolve_session(self, profile_id: ProfileId) -> Session | None:
        """Build a session for a profile that is allowed to use the board.

        The role comes from the stored profile, not from the token, so role
        changes and deactivations apply to existing cookies.

        Args:
            profile_id: Profile named by the session token

        Returns:
            Session for an active profile, None otherwise
        """
        profile = await self.profile_repository.find_by_id(profile_id)
        if not profile or not profile.is_active:
            logfire.info(
                "Session rejected - profile missing or inactive",
                profile_id=str(profile_id),
            )
            return None
        return Session(profile_id=profile.id, email=profile.email.root, role=profile.role)
