"""
Repository layer for the reading list.

The reading list is owned by the import side of the application; the resolver only reads it.
"""

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from shelfscan.internal.models import ReadingListEntry


class ReadingListRepository:
    """Read-only access to users' reading lists."""

    engine: AsyncEngine

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def get_for_user(self, user_id: str) -> list[ReadingListEntry]:
        """All entries of a user, in insertion order."""
        statement = (
            select(ReadingListEntry)
            .where(col(ReadingListEntry.user_id) == user_id)
            .order_by(col(ReadingListEntry.id))
        )
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            result = await session.exec(statement)
            return list(result.all())
