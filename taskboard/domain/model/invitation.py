"""Invitation entity.

An invitation offers one email address access to the board with a given role.
It is created on the first invite for an email and renewed in place on every
later send, so counters and the token survive resends.
"""

from datetime import date, datetime, timezone
from typing import Optional

from pydantic import Field

from taskboard.domain.model.common import DomainModel
from taskboard.domain.value import (
    Email,
    InvitationId,
    InvitationStatus,
    InvitationToken,
    ProfileId,
    Role,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Invitation(DomainModel):
    """Invitation entity.

    Business rules:
    - One pending invitation per email
    - Token is unique and reused across resends
    - Expiry is applied lazily when a reader notices ``expires_at`` has passed
    - ``version`` increases on every write and guards conditional updates
    """

    id: InvitationId
    email: Email
    role: Role = Role.USER
    message: Optional[str] = None
    invited_by: Optional[ProfileId] = None
    status: InvitationStatus = InvitationStatus.PENDING
    token: InvitationToken
    created_at: datetime = Field(default_factory=_utcnow)
    invited_at: datetime = Field(default_factory=_utcnow)
    accepted_at: Optional[datetime] = None
    expires_at: datetime
    updated_at: datetime = Field(default_factory=_utcnow)
    send_count: int = Field(default=1, ge=0)
    daily_send_count: int = Field(default=1, ge=0)
    daily_send_reset_at: date
    last_sent_at: Optional[datetime] = None
    version: int = Field(default=1, ge=1)

    def is_past_due(self, now: datetime) -> bool:
        """Whether the invitation should be treated as expired at ``now``."""
        return now > self.expires_at

    def sends_today(self, today: date) -> int:
        """Sends already counted for ``today`` (0 when the counter is stale)."""
        if self.daily_send_reset_at != today:
            return 0
        return self.daily_send_count
