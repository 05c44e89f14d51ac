"""Repository interfaces for the task board domain.

Interfaces live in the domain layer; implementations live in persistence.
"""

from taskboard.domain.repository.invitation import InvitationRepository
from taskboard.domain.repository.profile import ProfileRepository

__all__ = [
    "InvitationRepository",
    "ProfileRepository",
]
