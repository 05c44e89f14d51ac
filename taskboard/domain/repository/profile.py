"""Profile repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from taskboard.domain.model.profile import Profile
from taskboard.domain.value import Email, ProfileId


class ProfileRepository(ABC):
    """Repository for account profiles."""

    @abstractmethod
    async def find_by_id(self, profile_id: ProfileId) -> Optional[Profile]:
        """Find a profile by ID.

        Args:
            profile_id: Profile (and identity record) identifier

        Returns:
            The profile if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: Email) -> Optional[Profile]:
        """Find a profile by email.

        Args:
            email: Account email

        Returns:
            The profile if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, profile: Profile) -> Profile:
        """Save a profile (create or update).

        Args:
            profile: The profile to save

        Returns:
            The saved profile

        Raises:
            ConflictError: If another profile already holds the email
        """
        pass

    @abstractmethod
    async def delete(self, profile_id: ProfileId) -> None:
        """Delete a profile. Deleting a missing profile is a no-op."""
        pass
