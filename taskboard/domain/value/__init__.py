"""Domain value objects for the task board."""

from taskboard.domain.value.identifiers import InvitationId, ProfileId
from taskboard.domain.value.types import (
    AuthorizationRequest,
    Email,
    IdentityRecord,
    InvitationStats,
    InvitationStatus,
    InvitationToken,
    ProfileStatus,
    ProviderSession,
    Role,
    Session,
)

__all__ = [
    # Identifiers
    "InvitationId",
    "ProfileId",
    # Types
    "AuthorizationRequest",
    "Email",
    "IdentityRecord",
    "InvitationStats",
    "InvitationStatus",
    "InvitationToken",
    "ProfileStatus",
    "ProviderSession",
    "Role",
    "Session",
]
