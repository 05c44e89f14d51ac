"""Account profile entity.

The application-level account record. Its id is the identifier of the
identity record it is linked to; an identity without an active profile may
not use the board.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from taskboard.domain.model.common import DomainModel
from taskboard.domain.value import Email, ProfileId, ProfileStatus, Role


class Profile(DomainModel):
    """Account profile.

    An active profile is the sole source of truth for role-based routing.
    """

    id: ProfileId
    email: Email
    role: Role = Role.USER
    status: ProfileStatus = ProfileStatus.INACTIVE
    confirmed_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.status == ProfileStatus.ACTIVE

    @property
    def is_abandoned_signup(self) -> bool:
        """Inactive and never confirmed - safe to wipe for a clean re-invite."""
        return self.status == ProfileStatus.INACTIVE and self.confirmed_at is None
