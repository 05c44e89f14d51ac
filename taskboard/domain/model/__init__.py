"""Domain entities."""

from taskboard.domain.model.invitation import Invitation
from taskboard.domain.model.profile import Profile

__all__ = ["Invitation", "Profile"]
