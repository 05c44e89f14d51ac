"""PostgreSQL repository implementations."""

from taskboard.persistence.repository.invitation import PostgresInvitationRepository
from taskboard.persistence.repository.profile import PostgresProfileRepository

__all__ = [
    "PostgresInvitationRepository",
    "PostgresProfileRepository",
]
