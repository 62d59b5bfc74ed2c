"""
Group CRUD operations.

Dependencies: sqlalchemy, taskstore.boundary.db.models
System role: Group persistence operations
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskstore.boundary.db.CRUD.base_crud import BaseCRUD
from taskstore.boundary.db.models.group_model import GroupModel


class GroupCRUD(BaseCRUD[GroupModel]):
    """CRUD operations for GroupModel."""

    def __init__(self) -> None:
        """Initialize GroupCRUD with GroupModel."""
        super().__init__(GroupModel)

    async def get_by_name(self, session: AsyncSession, name: str) -> GroupModel | None:
        """
        Retrieve a group by unique name.

        Args:
            session: Async database session
            name: Group name

        Returns:
            GroupModel if found, None otherwise
        """
        stmt = select(GroupModel).where(GroupModel.name == name)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


group_crud = GroupCRUD()
