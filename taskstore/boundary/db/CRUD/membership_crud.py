"""
Membership CRUD operations.

Provides idempotent add, remove, member/group listings with joins, and
whole-set replacement for one user.

Dependencies: sqlalchemy, taskstore.boundary.db.models
System role: User-group association persistence
"""

from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskstore.boundary.db.base import utcnow
from taskstore.boundary.db.CRUD.base_crud import BaseCRUD
from taskstore.boundary.db.insert_ignore import insert_ignore
from taskstore.boundary.db.models.group_model import GroupModel
from taskstore.boundary.db.models.membership_model import MembershipModel
from taskstore.boundary.db.models.user_model import UserModel


class MembershipCRUD(BaseCRUD[MembershipModel]):
    """CRUD operations for MembershipModel."""

    def __init__(self) -> None:
        """Initialize MembershipCRUD with MembershipModel."""
        super().__init__(MembershipModel)

    async def add_many(
        self,
        session: AsyncSession,
        pairs: list[tuple[int, int]],
        joined_at: datetime | None = None,
    ) -> int:
        """
        Insert (user_id, group_id) pairs, skipping pairs that already exist.

        Args:
            session: Async database session
            pairs: Pairs to insert
            joined_at: Join timestamp for new rows (defaults to now)

        Returns:
            int: Rows reported by the driver (duplicates are not counted)
        """
        if not pairs:
            return 0
        joined = joined_at or utcnow()
        rows = [{"user_id": u, "group_id": g, "joined_at": joined} for u, g in pairs]
        stmt = insert_ignore(session.bind.dialect.name, MembershipModel.__table__, rows)
        result = await session.execute(stmt)
        return max(result.rowcount, 0)

    async def remove(self, session: AsyncSession, user_id: int, group_id: int) -> bool:
        """
        Delete one membership pair.

        Returns:
            True if the pair existed
        """
        stmt = delete(MembershipModel).where(
            MembershipModel.user_id == user_id,
            MembershipModel.group_id == group_id,
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def remove_for_user(self, session: AsyncSession, user_id: int) -> int:
        stmt = delete(MembershipModel).where(MembershipModel.user_id == user_id)
        result = await session.execute(stmt)
        return result.rowcount

    async def remove_for_group(self, session: AsyncSession, group_id: int) -> int:
        stmt = delete(MembershipModel).where(MembershipModel.group_id == group_id)
        result = await session.execute(stmt)
        return result.rowcount

    async def get_group_members(
        self,
        session: AsyncSession,
        group_id: int,
    ) -> Sequence[tuple[UserModel, datetime]]:
        """
        List users in a group with their join time, most recent first.

        Args:
            session: Async database session
            group_id: Group id

        Returns:
            Sequence of (UserModel, joined_at) rows
        """
        stmt = (
            select(UserModel, MembershipModel.joined_at)
            .join(MembershipModel, MembershipModel.user_id == UserModel.id)
            .where(MembershipModel.group_id == group_id)
            .order_by(MembershipModel.joined_at.desc(), UserModel.id)
        )
        result = await session.execute(stmt)
        return [(row[0], row[1]) for row in result]

    async def get_user_groups(self, session: AsyncSession, user_id: int) -> Sequence[GroupModel]:
        """
        List the groups a user belongs to.

        Args:
            session: Async database session
            user_id: User id

        Returns:
            Sequence of GroupModel ordered by id
        """
        stmt = (
            select(GroupModel)
            .join(MembershipModel, MembershipModel.group_id == GroupModel.id)
            .where(MembershipModel.user_id == user_id)
            .order_by(GroupModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def replace_for_user(
        self,
        session: AsyncSession,
        user_id: int,
        group_ids: list[int],
    ) -> int:
        """
        Replace a user's memberships with exactly the given groups.

        Runs inside the caller's transaction so the delete and insert commit
        together.

        Args:
            session: Async database session
            user_id: User id
            group_ids: De-duplicated numeric group ids

        Returns:
            int: Number of memberships now held
        """
        await self.remove_for_user(session, user_id)
        await self.add_many(session, [(user_id, gid) for gid in group_ids])
        return len(group_ids)


membership_crud = MembershipCRUD()
