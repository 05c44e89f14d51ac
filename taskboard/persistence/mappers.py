"""Mappers for converting between database rows and domain models.

Domain models are immutable pydantic models, so rows are mapped by hand
instead of through SQLAlchemy's ORM mapping.
"""

from typing import Any, Dict
from uuid import UUID

from taskboard.domain.model import Invitation, Profile
from taskboard.domain.value import (
    Email,
    InvitationId,
    InvitationStatus,
    InvitationToken,
    ProfileId,
    ProfileStatus,
    Role,
)


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_invitation(row: Dict[str, Any]) -> Invitation:
    """Convert database row to Invitation domain model."""
    return Invitation(
        id=InvitationId(_uuid(row["id"])),
        email=Email(root=row["email"]),
        role=Role(row["role"]),
        message=row.get("message"),
        invited_by=(
            ProfileId(_uuid(row["invited_by"])) if row.get("invited_by") else None
        ),
        status=InvitationStatus(row["status"]),
        token=InvitationToken(root=row["token"]),
        created_at=row["created_at"],
        invited_at=row["invited_at"],
        accepted_at=row.get("accepted_at"),
        expires_at=row["expires_at"],
        updated_at=row["updated_at"],
        send_count=row["send_count"],
        daily_send_count=row["daily_send_count"],
        daily_send_reset_at=row["daily_send_reset_at"],
        last_sent_at=row.get("last_sent_at"),
        version=row["version"],
    )


def invitation_to_dict(invitation: Invitation) -> Dict[str, Any]:
    """Convert Invitation domain model to a dict for insert/update.

    Enums are stored by value; the version column is managed by the repository.
    """
    data = invitation.model_dump(exclude={"version"})
    data["role"] = invitation.role.value
    data["status"] = invitation.status.value
    return data


def row_to_profile(row: Dict[str, Any]) -> Profile:
    """Convert database row to Profile domain model."""
    return Profile(
        id=ProfileId(_uuid(row["id"])),
        email=Email(root=row["email"]),
        role=Role(row["role"]),
        status=ProfileStatus(row["status"]),
        confirmed_at=row.get("confirmed_at"),
        last_sign_in_at=row.get("last_sign_in_at"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def profile_to_dict(profile: Profile) -> Dict[str, Any]:
    """Convert Profile domain model to a dict for insert/update."""
    data = profile.model_dump()
    data["role"] = profile.role.value
    data["status"] = profile.status.value
    return data
