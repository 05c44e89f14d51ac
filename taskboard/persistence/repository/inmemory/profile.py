"""In-memory profile repository for testing."""

from typing import Optional

from taskboard.domain.error import ConflictError
from taskboard.domain.model.profile import Profile
from taskboard.domain.repository.profile import ProfileRepository
from taskboard.domain.value import Email, ProfileId


class InMemoryProfileRepository(ProfileRepository):
    """In-memory implementation of ProfileRepository for testing.

    Enforces the unique email the profiles table has.
    """

    def __init__(self) -> None:
        self._profiles: dict[ProfileId, Profile] = {}

    async def find_by_id(self, profile_id: ProfileId) -> Optional[Profile]:
        return self._profiles.get(profile_id)

    async def find_by_email(self, email: Email) -> Optional[Profile]:
        for profile in self._profiles.values():
            if profile.email == email:
                return profile
        return None

    async def save(self, profile: Profile) -> Profile:
        existing = await self.find_by_email(profile.email)
        if existing is not None and existing.id != profile.id:
            raise ConflictError(f"Profile for {profile.email} already exists")
        self._profiles[profile.id] = profile
        return profile

    async def delete(self, profile_id: ProfileId) -> None:
        self._profiles.pop(profile_id, None)
