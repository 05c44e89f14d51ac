"""PostgreSQL implementation of Profile repository."""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.domain.error import ConflictError
from taskboard.domain.model import Profile
from taskboard.domain.repository import ProfileRepository
from taskboard.domain.value import Email, ProfileId
from taskboard.persistence.mappers import profile_to_dict, row_to_profile
from taskboard.persistence.tables import profiles_table


class PostgresProfileRepository(ProfileRepository):
    """PostgreSQL implementation of ProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_id(self, profile_id: ProfileId) -> Optional[Profile]:
        stmt = select(profiles_table).where(profiles_table.c.id == profile_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_profile(dict(row)) if row else None

    async def find_by_email(self, email: Email) -> Optional[Profile]:
        stmt = select(profiles_table).where(profiles_table.c.email == email.root)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_profile(dict(row)) if row else None

    async def save(self, profile: Profile) -> Profile:
        """Insert or update a profile keyed by id.

        Raises:
            ConflictError: If another profile already holds the email
        """
        values = profile_to_dict(profile)
        stmt = insert(profiles_table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[profiles_table.c.id],
            set_={k: v for k, v in values.items() if k not in ("id", "created_at")},
        )
        try:
            async with self.session.begin_nested():
                await self.session.execute(stmt)
        except IntegrityError as e:
            raise ConflictError(f"Profile for {profile.email} already exists") from e
        return profile

    async def delete(self, profile_id: ProfileId) -> None:
        await self.session.execute(
            delete(profiles_table).where(profiles_table.c.id == profile_id)
        )
        await self.session.flush()
