"""
Group and membership management.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.orm import Session, selectinload

from ratings_api.core.errors import AlreadyExists, NotFound
from ratings_api.db.session import atomic
from ratings_api.models.group import Group, GroupMembership, Role
from ratings_api.models.user import User

logger = logging.getLogger(__name__)


class GroupService:

    def __init__(self, db: Session):
        self.db = db

    def create_group(self, creator_id: str, name: str, description: Optional[str] = None) -> Group:
        """Create a group with the creator as its Admin, in one transaction."""
        group = Group(name=name, description=description)

        with atomic(self.db):
            if self.db.get(User, creator_id) is None:
                raise NotFound(f"User {creator_id} not found")
            self.db.add(group)
            self.db.flush()
            self.db.add(GroupMembership(group_id=group.id, user_id=creator_id, role=Role.ADMIN))

        self.db.refresh(group)
        logger.info(f"Group {group.id} created by user {creator_id}")
        return group

    def join_group(self, user_id: str, group_id: str, role: Role = Role.MEMBER) -> GroupMembership:
        """
        Raises:
            NotFound: group or user does not exist
            AlreadyExists: the user is already a member
        """
        with atomic(self.db):
            if self._lock_group(group_id) is None:
                raise NotFound(f"Group {group_id} not found")
            if self.db.get(User, user_id) is None:
                raise NotFound(f"User {user_id} not found")
            if self.is_member(user_id, group_id):
                raise AlreadyExists(f"User {user_id} is already a member of group {group_id}")

            membership = GroupMembership(group_id=group_id, user_id=user_id, role=role)
            self.db.add(membership)

        self.db.refresh(membership)
        return membership

    def _lock_group(self, group_id: str) -> Optional[str]:
        # Same row lock completion checks take; membership changes and
        # completion claims for one group run one at a time.
        stmt = select(Group.id).where(Group.id == group_id).with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_group(self, group_id: str) -> Group:
        group = self.db.get(Group, group_id)
        if group is None:
            raise NotFound(f"Group {group_id} not found")
        return group

    def get_memberships(self, user_id: str) -> List[GroupMembership]:
        """Memberships of a user, with their groups loaded."""
        stmt = (
            select(GroupMembership)
            .options(selectinload(GroupMembership.group))
            .where(GroupMembership.user_id == user_id)
            .order_by(GroupMembership.created_at, GroupMembership.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_members(self, group_id: str) -> List[GroupMembership]:
        stmt = (
            select(GroupMembership)
            .options(selectinload(GroupMembership.user))
            .where(GroupMembership.group_id == group_id)
            .order_by(GroupMembership.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_membership(self, membership_id: int) -> GroupMembership:
        membership = self.db.get(GroupMembership, membership_id)
        if membership is None:
            raise NotFound(f"Membership {membership_id} not found")
        return membership

    def is_member(self, user_id: str, group_id: str) -> bool:
        stmt = select(GroupMembership.id).where(
            GroupMembership.user_id == user_id,
            GroupMembership.group_id == group_id,
        )
        return self.db.execute(stmt).scalar_one_or_none() is not None

    def is_admin(self, user_id: str, group_id: str) -> bool:
        stmt = select(GroupMembership.role).where(
            GroupMembership.user_id == user_id,
            GroupMembership.group_id == group_id,
        )
        return self.db.execute(stmt).scalar_one_or_none() == Role.ADMIN

    def delete_membership(self, membership_id: int) -> int:
        """
        Remove one membership. The user's ratings in the group stay.
        """
        with atomic(self.db):
            group_id = self.db.execute(
                select(GroupMembership.group_id).where(GroupMembership.id == membership_id)
            ).scalar_one_or_none()
            if group_id is not None:
                self._lock_group(group_id)
            result = self.db.execute(delete(GroupMembership).where(GroupMembership.id == membership_id))
        if result.rowcount == 0:
            raise NotFound(f"Membership {membership_id} not found")
        return result.rowcount

    def delete_group(self, group_id: str) -> int:
        """
        Delete the group row. Memberships, ratings and ledger rows follow the
        store's foreign key rules.
        """
        with atomic(self.db):
            result = self.db.execute(delete(Group).where(Group.id == group_id))
        if result.rowcount == 0:
            raise NotFound(f"Group {group_id} not found")
        logger.info(f"Group {group_id} deleted")
        return result.rowcount
