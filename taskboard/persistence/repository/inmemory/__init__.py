"""In-memory repository implementations for testing."""

from .invitation import InMemoryInvitationRepository
from .profile import InMemoryProfileRepository

__all__ = [
    "InMemoryInvitationRepository",
    "InMemoryProfileRepository",
]
