"""
User CRUD operations.

Dependencies: sqlalchemy, taskstore.boundary.db.models
System role: User persistence operations
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskstore.boundary.db.CRUD.base_crud import BaseCRUD
from taskstore.boundary.db.models.user_model import UserModel


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel with username lookup and group detach."""

    def __init__(self) -> None:
        """Initialize UserCRUD with UserModel."""
        super().__init__(UserModel)

    async def get_by_username(self, session: AsyncSession, username: str) -> UserModel | None:
        """
        Retrieve a user by unique username.

        Args:
            session: Async database session
            username: Login name

        Returns:
            UserModel if found, None otherwise
        """
        stmt = select(UserModel).where(UserModel.username == username)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def detach_group(self, session: AsyncSession, group_id: int) -> int:
        """
        Clear the legacy group_id of every user pointing at a group.

        Args:
            session: Async database session
            group_id: Group being removed

        Returns:
            int: Number of users detached
        """
        stmt = (
            update(UserModel)
            .where(UserModel.group_id == group_id)
            .values(group_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount


user_crud = UserCRUD()
