"""Account eligibility lookups."""

from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from inbox_api.models.user import User


class UserAccessRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def user_has_notification_access(self, user_id: UUID) -> bool:
        """Any existing account may use its inbox."""
        result = await self.session.scalar(select(exists().where(User.id == user_id)))
        return bool(result)


__all__ = ["UserAccessRepository"]
