"""Response pieces shared by the invitation use cases."""

from datetime import datetime

from taskboard.application.usecase.base import CamelModel
from taskboard.domain.model import Invitation
from taskboard.domain.value import InvitationStats, InvitationStatus, Role


class InvitationStatsView(CamelModel):
    """Send counters as reported to the admin."""

    send_count: int
    daily_send_count: int
    remaining_today: int

    @classmethod
    def from_stats(cls, stats: InvitationStats) -> "InvitationStatsView":
        return cls(
            send_count=stats.send_count,
            daily_send_count=stats.daily_send_count,
            remaining_today=stats.remaining_today,
        )


class InvitationItem(CamelModel):
    """Invitation row in the admin listing."""

    id: str
    email: str
    role: Role
    message: str | None
    status: InvitationStatus
    invited_by: str | None
    created_at: datetime
    invited_at: datetime
    accepted_at: datetime | None
    expires_at: datetime
    send_count: int
    daily_send_count: int
    last_sent_at: datetime | None

    @classmethod
    def from_invitation(cls, invitation: Invitation) -> "InvitationItem":
        return cls(
            id=str(invitation.id),
            email=invitation.email.root,
            role=invitation.role,
            message=invitation.message,
            status=invitation.status,
            invited_by=str(invitation.invited_by) if invitation.invited_by else None,
            created_at=invitation.created_at,
            invited_at=invitation.invited_at,
            accepted_at=invitation.accepted_at,
            expires_at=invitation.expires_at,
            send_count=invitation.send_count,
            daily_send_count=invitation.daily_send_count,
            last_sent_at=invitation.last_sent_at,
        )
