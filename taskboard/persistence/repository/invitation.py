"""PostgreSQL implementation of Invitation repository."""

from collections.abc import Collection
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.domain.error import ConcurrentUpdateError
from taskboard.domain.model import Invitation
from taskboard.domain.repository import InvitationRepository
from taskboard.domain.value import Email, InvitationId, InvitationStatus, InvitationToken
from taskboard.persistence.mappers import invitation_to_dict, row_to_invitation
from taskboard.persistence.tables import invitations_table


class PostgresInvitationRepository(InvitationRepository):
    """PostgreSQL implementation of InvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, invitation_id: InvitationId) -> Optional[Invitation]:
        stmt = select(invitations_table).where(invitations_table.c.id == invitation_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_invitation(dict(row)) if row else None

    async def find_by_token(self, token: InvitationToken) -> Optional[Invitation]:
        stmt = select(invitations_table).where(invitations_table.c.token == token.root)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_invitation(dict(row)) if row else None

    async def find_latest_by_email(
        self, email: Email, statuses: Collection[InvitationStatus]
    ) -> Optional[Invitation]:
        stmt = (
            select(invitations_table)
            .where(
                and_(
                    invitations_table.c.email == email.root,
                    invitations_table.c.status.in_([s.value for s in statuses]),
                )
            )
            .order_by(invitations_table.c.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_invitation(dict(row)) if row else None

    async def exists_pending_for_email(
        self, email: Email, exclude_id: InvitationId | None = None
    ) -> bool:
        conditions = [
            invitations_table.c.email == email.root,
            invitations_table.c.status == InvitationStatus.PENDING.value,
        ]
        if exclude_id is not None:
            conditions.append(invitations_table.c.id != exclude_id)
        stmt = select(invitations_table.c.id).where(and_(*conditions))
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def create(self, invitation: Invitation) -> Invitation:
        """Insert a new invitation.

        The insert runs in a savepoint so a unique violation leaves the
        surrounding transaction usable for the retry.

        Raises:
            ConcurrentUpdateError: If the pending-email index or the token
                uniqueness rejects the row
        """
        values = invitation_to_dict(invitation)
        values["version"] = invitation.version
        try:
            async with self.session.begin_nested():
                await self.session.execute(insert(invitations_table).values(**values))
        except IntegrityError as e:
            raise ConcurrentUpdateError(
                f"Invitation for {invitation.email} conflicts with an existing row"
            ) from e
        return invitation

    async def update(self, invitation: Invitation, expected_version: int) -> Invitation:
        values = invitation_to_dict(invitation)
        values.pop("id")
        values["version"] = expected_version + 1
        stmt = (
            update(invitations_table)
            .where(
                and_(
                    invitations_table.c.id == invitation.id,
                    invitations_table.c.version == expected_version,
                )
            )
            .values(**values)
        )
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(stmt)
        except IntegrityError as e:
            raise ConcurrentUpdateError(
                f"Invitation {invitation.id} conflicts with an existing row"
            ) from e

        if result.rowcount != 1:
            raise ConcurrentUpdateError(
                f"Invitation {invitation.id} changed since version {expected_version}"
            )
        return invitation.model_copy(update={"version": expected_version + 1})

    async def delete_for_email(
        self, email: Email, statuses: Collection[InvitationStatus]
    ) -> int:
        stmt = delete(invitations_table).where(
            and_(
                invitations_table.c.email == email.root,
                invitations_table.c.status.in_([s.value for s in statuses]),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def expire_overdue(self, now: datetime) -> int:
        stmt = (
            update(invitations_table)
            .where(
                and_(
                    invitations_table.c.status == InvitationStatus.PENDING.value,
                    invitations_table.c.expires_at < now,
                )
            )
            .values(
                status=InvitationStatus.EXPIRED.value,
                updated_at=now,
                version=invitations_table.c.version + 1,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def find_all(
        self,
        status: Optional[InvitationStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invitation]:
        stmt = select(invitations_table)
        if status:
            stmt = stmt.where(invitations_table.c.status == status.value)
        stmt = (
            stmt.order_by(invitations_table.c.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return [row_to_invitation(dict(row)) for row in result.mappings().all()]

    async def count(self, status: Optional[InvitationStatus] = None) -> int:
        stmt = select(func.count()).select_from(invitations_table)
        if status:
            stmt = stmt.where(invitations_table.c.status == status.value)
        result = await self.session.execute(stmt)
        return result.scalar_one()
