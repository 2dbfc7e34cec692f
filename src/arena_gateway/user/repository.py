"""Profile lookups: administrator flag and username enrichment."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_gateway.user.db_models import ProfileModel


class ProfileRepository:
    async def get_profile(self, db: AsyncSession, user_id: str) -> ProfileModel | None:
        result = await db.execute(select(ProfileModel).where(ProfileModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_usernames(
        self, db: AsyncSession, user_ids: Iterable[str]
    ) -> dict[str, str | None]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        result = await db.execute(
            select(ProfileModel.id, ProfileModel.username).where(ProfileModel.id.in_(ids))
        )
        return {row.id: row.username for row in result.all()}
