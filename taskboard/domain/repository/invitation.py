"""Invitation repository interface."""

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime

from taskboard.domain.model.invitation import Invitation
from taskboard.domain.value import Email, InvitationId, InvitationStatus, InvitationToken


class InvitationRepository(ABC):
    """Repository for Invitation entity.

    Writes are conditional: ``update`` only succeeds when the stored row still
    carries the version the caller read, and ``create`` fails when a pending
    row already exists for the email. Both raise ``ConcurrentUpdateError`` so
    the service can re-read and retry.
    """

    @abstractmethod
    async def find_by_id(self, invitation_id: InvitationId) -> Invitation | None:
        """Find an invitation by ID.

        Args:
            invitation_id: The invitation's unique identifier

        Returns:
            The invitation if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_token(self, token: InvitationToken) -> Invitation | None:
        """Find an invitation by token.

        Used when the invitee opens the invite link.

        Args:
            token: The invitation token

        Returns:
            The invitation if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_latest_by_email(
        self, email: Email, statuses: Collection[InvitationStatus]
    ) -> Invitation | None:
        """Find the most recently created invitation for an email.

        Args:
            email: Invitee email
            statuses: Only consider invitations in one of these states

        Returns:
            The newest matching invitation, None if there is none
        """
        pass

    @abstractmethod
    async def exists_pending_for_email(
        self, email: Email, exclude_id: InvitationId | None = None
    ) -> bool:
        """Check whether a pending invitation exists for an email.

        Args:
            email: Invitee email
            exclude_id: Invitation to ignore (the one being revived)

        Returns:
            True if another pending invitation exists
        """
        pass

    @abstractmethod
    async def create(self, invitation: Invitation) -> Invitation:
        """Insert a new invitation.

        Raises:
            ConcurrentUpdateError: If a pending invitation for the email or the
                same token already exists
        """
        pass

    @abstractmethod
    async def update(self, invitation: Invitation, expected_version: int) -> Invitation:
        """Conditionally replace a stored invitation.

        The write only applies when the stored version equals
        ``expected_version``; the stored row gets ``expected_version + 1``.

        Args:
            invitation: New state of the invitation
            expected_version: Version the caller based the change on

        Returns:
            The stored invitation with its new version

        Raises:
            ConcurrentUpdateError: If the row changed or disappeared meanwhile
        """
        pass

    @abstractmethod
    async def delete_for_email(
        self, email: Email, statuses: Collection[InvitationStatus]
    ) -> int:
        """Delete invitations for an email in the given states.

        Returns:
            Number of deleted rows
        """
        pass

    @abstractmethod
    async def expire_overdue(self, now: datetime) -> int:
        """Mark every pending invitation past its expiry as expired.

        Returns:
            Number of invitations transitioned
        """
        pass

    @abstractmethod
    async def find_all(
        self,
        status: InvitationStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invitation]:
        """List invitations, newest first.

        Args:
            status: Optional status filter
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            List of invitations
        """
        pass

    @abstractmethod
    async def count(self, status: InvitationStatus | None = None) -> int:
        """Count invitations, optionally filtered by status."""
        pass
