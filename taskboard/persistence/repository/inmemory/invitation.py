"""In-memory invitation repository for testing."""

from collections.abc import Collection
from datetime import datetime
from typing import Optional

from taskboard.domain.error import ConcurrentUpdateError
from taskboard.domain.model.invitation import Invitation
from taskboard.domain.repository.invitation import InvitationRepository
from taskboard.domain.value import Email, InvitationId, InvitationStatus, InvitationToken


class InMemoryInvitationRepository(InvitationRepository):
    """In-memory implementation of InvitationRepository for testing.

    Enforces the same uniqueness and version checks as the database.
    """

    def __init__(self) -> None:
        self._invitations: dict[InvitationId, Invitation] = {}

    async def find_by_id(self, invitation_id: InvitationId) -> Optional[Invitation]:
        return self._invitations.get(invitation_id)

    async def find_by_token(self, token: InvitationToken) -> Optional[Invitation]:
        for invitation in self._invitations.values():
            if invitation.token == token:
                return invitation
        return None

    async def find_latest_by_email(
        self, email: Email, statuses: Collection[InvitationStatus]
    ) -> Optional[Invitation]:
        matching = [
            i
            for i in self._invitations.values()
            if i.email == email and i.status in statuses
        ]
        if not matching:
            return None
        return max(matching, key=lambda i: i.created_at)

    async def exists_pending_for_email(
        self, email: Email, exclude_id: InvitationId | None = None
    ) -> bool:
        return any(
            i.email == email
            and i.status == InvitationStatus.PENDING
            and i.id != exclude_id
            for i in self._invitations.values()
        )

    async def create(self, invitation: Invitation) -> Invitation:
        """Insert a new invitation.

        Raises:
            ConcurrentUpdateError: If id, token or pending email collide
        """
        if invitation.id in self._invitations:
            raise ConcurrentUpdateError(f"Invitation {invitation.id} already exists")
        self._check_unique(invitation)
        self._invitations[invitation.id] = invitation
        return invitation

    async def update(self, invitation: Invitation, expected_version: int) -> Invitation:
        stored = self._invitations.get(invitation.id)
        if stored is None or stored.version != expected_version:
            raise ConcurrentUpdateError(
                f"Invitation {invitation.id} changed since version {expected_version}"
            )
        self._check_unique(invitation)
        saved = invitation.model_copy(update={"version": expected_version + 1})
        self._invitations[invitation.id] = saved
        return saved

    async def delete_for_email(
        self, email: Email, statuses: Collection[InvitationStatus]
    ) -> int:
        doomed = [
            i.id
            for i in self._invitations.values()
            if i.email == email and i.status in statuses
        ]
        for invitation_id in doomed:
            del self._invitations[invitation_id]
        return len(doomed)

    async def expire_overdue(self, now: datetime) -> int:
        expired = 0
        for invitation in list(self._invitations.values()):
            if invitation.status == InvitationStatus.PENDING and invitation.is_past_due(
                now
            ):
                self._invitations[invitation.id] = invitation.model_copy(
                    update={
                        "status": InvitationStatus.EXPIRED,
                        "updated_at": now,
                        "version": invitation.version + 1,
                    }
                )
                expired += 1
        return expired

    async def find_all(
        self,
        status: Optional[InvitationStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invitation]:
        invitations = [
            i for i in self._invitations.values() if status is None or i.status == status
        ]
        invitations.sort(key=lambda i: i.created_at, reverse=True)
        return invitations[offset : offset + limit]

    async def count(self, status: Optional[InvitationStatus] = None) -> int:
        return sum(
            1
            for i in self._invitations.values()
            if status is None or i.status == status
        )

    def _check_unique(self, invitation: Invitation) -> None:
        for other in self._invitations.values():
            if other.id == invitation.id:
                continue
            if other.token == invitation.token:
                raise ConcurrentUpdateError("Duplicate invitation token")
            if (
                invitation.status == InvitationStatus.PENDING
                and other.status == InvitationStatus.PENDING
                and other.email == invitation.email
            ):
                raise ConcurrentUpdateError(
                    f"Pending invitation already exists for {invitation.email}"
                )
